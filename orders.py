"""
Order lifecycle: creation with server-side pricing, listing, status changes,
payments and soft deletion.

Every write to an existing order goes through a compare-and-swap on the
order's "version" so two concurrent updates cannot silently overwrite each
other.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from catalog import get_service, service_from_document
from database import count_documents, create_document, get_document_by_id, get_documents, update_document_if_version
from errors import (
    ConcurrentUpdate,
    Forbidden,
    InvalidSelection,
    InvalidStatus,
    InvalidTransition,
    NotFound,
    OrderAlreadyPaid,
    OrderNotPayable,
    ServiceInactive,
)
from pricing import compute_price
from schemas import Order, Payment, ServiceSnapshot
from status_policy import OrderStatus, PAYABLE_STATUSES, Role, parse_status, validate_transition

logger = logging.getLogger(__name__)

COLLECTION = "order"


def _quantity(detail: Dict[str, Any], minimum_units: int) -> int:
    quantity = detail.get("quantity", 1)
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidSelection("Quantity must be a whole number of at least 1.")
    if quantity < minimum_units:
        raise InvalidSelection(f"A minimum of {minimum_units} units is required.")
    return quantity


def _priced_service(service_id: str):
    doc = get_service(service_id)
    if not doc.get("active", True):
        raise ServiceInactive("The selected service is not currently available.")
    return doc, service_from_document(doc)


def estimate(service_doc: dict, service, detail: Dict[str, Any]) -> Dict[str, Any]:
    unit_price = compute_price(service, detail)
    quantity = _quantity(detail, service.minimum_units)
    return {
        "service": {"id": service_doc["id"], "name": service_doc["name"]},
        "unit_price": unit_price,
        "quantity": quantity,
        "estimated_price": round(unit_price * quantity, 2),
    }


def quote(service_id: str, detail: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Price an order without placing it."""
    doc, service = _priced_service(service_id)
    return estimate(doc, service, detail or {})


def create_order(customer_id: str, service_id: str, detail: Optional[Dict[str, Any]] = None, observations: Optional[str] = None) -> dict:
    detail = detail or {}
    doc, service = _priced_service(service_id)
    priced = estimate(doc, service, detail)
    order = Order(
        customer_id=customer_id,
        service=ServiceSnapshot(**priced["service"]),
        detail=detail,
        observations=observations,
        estimated_price=priced["estimated_price"],
    )
    order_id = create_document(COLLECTION, order)
    logger.info("Order %s created for customer %s (service %s, %.2f)", order_id, customer_id, service_id, order.estimated_price)
    return get_document_by_id(COLLECTION, order_id)


def list_customer_orders(customer_id: str) -> list:
    return get_documents(COLLECTION, {"customer_id": customer_id, "active": True}, sort=[("created_at", -1)])


def list_orders(status: Optional[str] = None, customer_id: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    filt: Dict[str, Any] = {"active": True}
    if status:
        filt["status"] = parse_status(status).value
    if customer_id:
        filt["customer_id"] = customer_id
    if search:
        pattern = re.escape(search)
        filt["$or"] = [
            {"service.name": {"$regex": pattern, "$options": "i"}},
            {"observations": {"$regex": pattern, "$options": "i"}},
        ]
    total = count_documents(COLLECTION, filt)
    items = get_documents(COLLECTION, filt, limit=limit, sort=[("created_at", -1)], skip=(page - 1) * limit)
    return {
        "items": items,
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }


def _load(order_id: str) -> dict:
    order = get_document_by_id(COLLECTION, order_id)
    if order is None or not order.get("active", True):
        raise NotFound("The requested order does not exist.")
    return order


def get_order(order_id: str, actor: dict) -> dict:
    order = _load(order_id)
    if actor.get("role") == Role.customer.value and order.get("customer_id") != actor["id"]:
        raise Forbidden("You do not have permission to view this order.")
    return order


def _write(order: dict, changes: Dict[str, Any], expected_version: Optional[int] = None) -> dict:
    version = order.get("version", 1) if expected_version is None else expected_version
    updated = update_document_if_version(COLLECTION, order["id"], version, changes)
    if updated is None:
        raise ConcurrentUpdate("The order was modified by someone else. Reload it and try again.")
    return updated


def update_status(order_id: str, new_status: str, actor: dict, observations: Optional[str] = None, expected_version: Optional[int] = None) -> dict:
    order = get_order(order_id, actor)
    try:
        validate_transition(order.get("status"), new_status, actor.get("role"))
    except (InvalidStatus, InvalidTransition):
        logger.warning("Rejected status change of order %s from %s to %s by %s", order_id, order.get("status"), new_status, actor["id"])
        raise
    changes: Dict[str, Any] = {"status": OrderStatus(new_status).value}
    if observations is not None:
        changes["observations"] = observations
    updated = _write(order, changes, expected_version)
    logger.info("Order %s status %s -> %s by %s", order_id, order.get("status"), changes["status"], actor["id"])
    return updated


def cancel_order(order_id: str, actor: dict) -> dict:
    return update_status(order_id, OrderStatus.cancelled.value, actor)


def register_payment(order_id: str, method: str, amount: float, observations: Optional[str] = None) -> dict:
    order = _load(order_id)
    if order.get("status") not in {s.value for s in PAYABLE_STATUSES}:
        raise OrderNotPayable(
            f'Payments can only be registered for finished or delivered orders. Current status: "{order.get("status")}".'
        )
    if order.get("payment_status") == "paid":
        raise OrderAlreadyPaid("This order has already been paid.")
    payment = Payment(method=method, amount=amount, observations=observations)
    updated = _write(order, {"payment_status": "paid", "payment": payment.model_dump()})
    logger.info("Payment of %.2f (%s) registered for order %s", amount, method, order_id)
    return updated


def delete_order(order_id: str) -> dict:
    order = _load(order_id)
    updated = _write(order, {"active": False, "deleted_at": datetime.now(timezone.utc)})
    logger.info("Order %s deleted", order_id)
    return updated
