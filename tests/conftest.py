import mongomock
import pytest

import catalog
import database
import users
from schemas import FixedPackageService, MultiCategoryService, SingleOptionService


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["laundromat_test"]
    monkeypatch.setattr(database, "db", mock_db)
    users.ensure_indexes()
    return mock_db


@pytest.fixture
def wash_and_iron(db):
    return catalog.create_service(FixedPackageService(
        pricing_model="fixed_package_with_addons",
        name="Wash and dry",
        description="Washing and drying package",
        base_price=800,
        addons={"Planchado": 100, "perfume": 50},
    ))


@pytest.fixture
def duvet(db):
    return catalog.create_service(MultiCategoryService(
        pricing_model="multi_category_options",
        name="Duvet cleaning",
        minimum_units=2,
        options={
            "size": {"single": 1500, "double": 2200},
            "fabric": {"cotton": 0, "feather": 600},
        },
    ))


@pytest.fixture
def dry_cleaning(db):
    return catalog.create_service(SingleOptionService(
        pricing_model="single_option",
        name="Dry cleaning",
        options={"suit": 3000, "coat": 4500},
    ))


@pytest.fixture
def customer(db):
    return users.create_user("Ana Perez", "Ana@Example.com", "secret123")


@pytest.fixture
def other_customer(db):
    return users.create_user("Luis Gomez", "luis@example.com", "secret123")


@pytest.fixture
def admin(db):
    return users.create_user("Root Admin", "admin@example.com", "adminpass", role="admin")


@pytest.fixture
def operator(db):
    return users.create_user("Op Erator", "operator@example.com", "operpass", role="operator")
