"""
Laundry service catalog. Services are validated as one of the pricing-model
variants in schemas.py and are only ever deactivated, never deleted.
"""
import logging
from typing import List

from pydantic import ValidationError

from database import create_document, get_document_by_id, get_documents, update_document
from errors import NotFound, ServiceAlreadyActive, ServiceAlreadyInactive, UnsupportedPricingModel
from pricing import PRICING_MODELS
from schemas import service_adapter

logger = logging.getLogger(__name__)

COLLECTION = "service"
_STORED_FIELDS = ("id", "created_at", "updated_at")


def service_from_document(doc: dict):
    """Build the typed service variant for a stored document."""
    if doc.get("pricing_model") not in PRICING_MODELS:
        raise UnsupportedPricingModel("This service's pricing model is not valid or is misconfigured.")
    data = {k: v for k, v in doc.items() if k not in _STORED_FIELDS}
    try:
        return service_adapter.validate_python(data)
    except ValidationError as e:
        raise UnsupportedPricingModel("This service's pricing configuration is invalid.", details=e.errors(include_url=False, include_context=False, include_input=False))


def list_services(include_inactive: bool = False) -> List[dict]:
    filt = {} if include_inactive else {"active": True}
    return get_documents(COLLECTION, filt, sort=[("name", 1)])


def get_service(service_id: str) -> dict:
    service = get_document_by_id(COLLECTION, service_id)
    if service is None:
        raise NotFound("The requested service does not exist.")
    return service


def create_service(service) -> dict:
    service_id = create_document(COLLECTION, service)
    logger.info("Service %s (%s) created", service_id, service.pricing_model)
    return get_service(service_id)


def update_service(service_id: str, service) -> dict:
    current = get_service(service_id)
    data = service.model_dump()
    # fields of the previous pricing model must not linger
    stale = [k for k in current if k not in data and k not in _STORED_FIELDS]
    update_document(COLLECTION, service_id, data, unset=stale)
    logger.info("Service %s updated (%s -> %s)", service_id, current.get("pricing_model"), service.pricing_model)
    return get_service(service_id)



def set_active(service_id: str, active: bool) -> dict:
    current = get_service(service_id)
    if active and current.get("active", True):
        raise ServiceAlreadyActive("This service is already active.")
    if not active and not current.get("active", True):
        raise ServiceAlreadyInactive("This service is already inactive.")
    update_document(COLLECTION, service_id, {"active": active})
    logger.info("Service %s %s", service_id, "activated" if active else "deactivated")
    return get_service(service_id)
