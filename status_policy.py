"""
Order status policy: which status changes each kind of user may make.
"""
from enum import Enum
from typing import Dict, FrozenSet

from errors import InvalidStatus, InvalidTransition


class OrderStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    finished = "finished"
    delivered = "delivered"
    cancelled = "cancelled"


class Role(str, Enum):
    customer = "customer"
    admin = "admin"
    operator = "operator"


INITIAL_STATUS = OrderStatus.pending
PAYABLE_STATUSES = frozenset({OrderStatus.finished, OrderStatus.delivered})

# Staff may currently move an order anywhere, including back out of cancelled.
_ANY = frozenset(OrderStatus)
STAFF_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {s: _ANY for s in OrderStatus}

CUSTOMER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.pending: frozenset({OrderStatus.cancelled}),
}

ALLOWED_TRANSITIONS: Dict[Role, Dict[OrderStatus, FrozenSet[OrderStatus]]] = {
    Role.admin: STAFF_TRANSITIONS,
    Role.operator: STAFF_TRANSITIONS,
    Role.customer: CUSTOMER_TRANSITIONS,
}


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise InvalidStatus(f'Unknown order status "{value}". Expected one of: {allowed}.')


def validate_transition(current_status, next_status, actor_role) -> None:
    """Raise unless ``actor_role`` may move an order from ``current_status``
    to ``next_status``. Status labels are checked before the role table.
    """
    current = parse_status(current_status)
    target = parse_status(next_status)

    try:
        role = Role(actor_role)
    except ValueError:
        raise InvalidTransition(f'Role "{actor_role}" cannot change order status.')

    allowed = ALLOWED_TRANSITIONS[role].get(current, frozenset())
    if target in allowed:
        return

    if role is Role.customer:
        raise InvalidTransition(
            f'Customers can only cancel pending orders; cannot change "{current.value}" to "{target.value}".'
        )
    options = ", ".join(sorted(s.value for s in allowed)) or "none"
    raise InvalidTransition(
        f'Cannot change "{current.value}" to "{target.value}". Allowed: {options}.'
    )
