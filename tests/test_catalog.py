import pytest

import catalog
from errors import NotFound, ServiceAlreadyActive, UnsupportedPricingModel
from schemas import FixedPackageService, SingleOptionService


def test_changing_pricing_model_drops_old_fields(db, duvet):
    updated = catalog.update_service(duvet["id"], FixedPackageService(
        pricing_model="fixed_package_with_addons",
        name="Duvet package",
        base_price=2000,
    ))
    assert updated["pricing_model"] == "fixed_package_with_addons"
    assert "options" not in updated
    assert updated["created_at"] == duvet["created_at"]
    assert catalog.service_from_document(updated).base_price == 2000


def test_update_keeps_model_specific_fields(dry_cleaning):
    updated = catalog.update_service(dry_cleaning["id"], SingleOptionService(
        pricing_model="single_option",
        name="Dry cleaning",
        options={"suit": 3200},
    ))
    assert updated["options"] == {"suit": 3200}


def test_update_unknown_service(db):
    with pytest.raises(NotFound):
        catalog.update_service("64b7f0c2e4b0a1a2b3c4d5e6", SingleOptionService(
            pricing_model="single_option",
            name="Dry cleaning",
            options={"suit": 3000},
        ))


def test_stored_quantity_category_is_misconfigured(db):
    service_id = str(db["service"].insert_one({
        "name": "Rugs",
        "pricing_model": "multi_category_options",
        "options": {"quantity": {"one": 100}},
        "active": True,
    }).inserted_id)
    with pytest.raises(UnsupportedPricingModel):
        catalog.service_from_document(catalog.get_service(service_id))


def test_activate_active_service(wash_and_iron):
    with pytest.raises(ServiceAlreadyActive):
        catalog.set_active(wash_and_iron["id"], True)
