import itertools

import pytest

from errors import InvalidStatus, InvalidTransition
from status_policy import OrderStatus, validate_transition

ALL_PAIRS = list(itertools.product([s.value for s in OrderStatus], repeat=2))


@pytest.mark.parametrize("role", ["admin", "operator"])
@pytest.mark.parametrize("current,target", ALL_PAIRS)
def test_staff_can_move_anywhere(role, current, target):
    validate_transition(current, target, role)


def test_customer_can_cancel_pending():
    validate_transition("pending", "cancelled", "customer")


@pytest.mark.parametrize("current,target", [p for p in ALL_PAIRS if p != ("pending", "cancelled")])
def test_customer_cannot_make_other_changes(current, target):
    with pytest.raises(InvalidTransition) as exc:
        validate_transition(current, target, "customer")
    assert "Customers" in exc.value.message


def test_customer_cannot_cancel_in_progress():
    with pytest.raises(InvalidTransition):
        validate_transition("in_progress", "cancelled", "customer")


def test_unknown_status_rejected_before_role_check():
    with pytest.raises(InvalidStatus):
        validate_transition("received", "pending", "admin")
    with pytest.raises(InvalidStatus):
        validate_transition("pending", "lost", "nobody")


def test_unknown_role():
    with pytest.raises(InvalidTransition):
        validate_transition("pending", "cancelled", "guest")


def test_accepts_enum_members():
    validate_transition(OrderStatus.pending, OrderStatus.cancelled, "customer")
