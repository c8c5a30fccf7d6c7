"""
Order status machine tests

Tests:
  1. Forward path: each status advances to exactly the next one
  2. Cancellation from every non-terminal status
  3. Terminal orders reject every transition
  4. Skips, reversals, repeats and unknown values are rejected
  5. Customer permissions (cancel while pending, nothing else)
  6. Legacy status values
  7. Actions offered to each viewer
"""
from datetime import datetime, timezone

import pytest

from chopnow.core.exceptions import InvalidTransition, TerminalStateError, TransitionForbidden
from chopnow.models.order import OrderStatus
from chopnow.models.user import Role
from chopnow.schemas.order import OrderRecord
from chopnow.services.status_machine import (
    FORWARD_PATH,
    NEXT_STATUS,
    apply_transition,
    available_actions,
    can_rate,
    is_reachable,
    next_status,
    parse_status,
)

CUSTOMER_ID = "cust-1"
NON_TERMINAL = [s for s in OrderStatus if s not in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)]
EARLIER = datetime(2025, 1, 1, tzinfo=timezone.utc)


def order_in(status, **fields) -> OrderRecord:
    return OrderRecord(
        id="ord-1",
        user_id=CUSTOMER_ID,
        vendor_id="ven-1",
        total_amount="20.00",
        status=status,
        created_at=EARLIER,
        updated_at=EARLIER,
        **fields,
    )


# ─── Test 1: Forward path ──────────────────────────────────────────────────────
@pytest.mark.parametrize("current,following", list(NEXT_STATUS.items()))
def test_advances_to_next_status(current, following):
    """Every non-terminal status except cancelled has exactly one forward successor."""
    order = order_in(current)
    moved = apply_transition(order, following)
    assert moved.status == following
    assert moved.updated_at > EARLIER, "updated_at must be refreshed on a transition"
    assert order.status == current, "apply_transition must not mutate its input"


@pytest.mark.parametrize("current,following", list(NEXT_STATUS.items()) + [(OrderStatus.PREPARING, OrderStatus.CANCELLED)])
def test_transition_changes_only_status_and_updated_at(current, following):
    order = order_in(
        current,
        items=[{"menu_item_id": "m-1", "name": "Egusi soup", "quantity": 2, "price": "10.00"}],
        delivery_address="12 Allen Ave, Ikeja",
        delivery_location={"lat": 6.6018, "lng": 3.3515},
        notes="No pepper",
        vendors={"vendor_name": "Iya Basira", "phone": "0803"},
    )
    moved = apply_transition(order, following, Role.ADMIN)
    assert moved.model_dump(exclude={"status", "updated_at"}) == order.model_dump(exclude={"status", "updated_at"})


def test_full_walk_reaches_delivered():
    order = order_in(OrderStatus.PENDING)
    for target in FORWARD_PATH[1:]:
        order = apply_transition(order, target, Role.VENDOR)
    assert order.status == OrderStatus.DELIVERED


def test_next_status_of_delivered_is_none():
    assert next_status(OrderStatus.DELIVERED) is None
    assert next_status(OrderStatus.CANCELLED) is None


# ─── Test 2: Cancellation ──────────────────────────────────────────────────────
@pytest.mark.parametrize("current", NON_TERMINAL)
def test_cancel_from_any_non_terminal_status(current):
    moved = apply_transition(order_in(current), "cancelled", Role.ADMIN)
    assert moved.status == OrderStatus.CANCELLED


# ─── Test 3: Terminal states ───────────────────────────────────────────────────
@pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
@pytest.mark.parametrize("target", [s.value for s in OrderStatus] + ["nonsense"])
def test_terminal_orders_reject_every_target(terminal, target):
    """Delivered and cancelled are absorbing, whatever the target."""
    with pytest.raises(TerminalStateError) as exc_info:
        apply_transition(order_in(terminal), target, Role.ADMIN)
    assert exc_info.value.current == terminal.value


def test_terminal_error_is_an_invalid_transition():
    with pytest.raises(InvalidTransition):
        apply_transition(order_in(OrderStatus.DELIVERED), "cancelled")


# ─── Test 4: Rejected moves ────────────────────────────────────────────────────
def test_skipping_a_step_is_rejected():
    with pytest.raises(InvalidTransition) as exc_info:
        apply_transition(order_in(OrderStatus.PENDING), "preparing", Role.VENDOR)
    assert not isinstance(exc_info.value, TerminalStateError)
    assert exc_info.value.current == "pending"
    assert exc_info.value.target == "preparing"


def test_moving_backwards_is_rejected():
    with pytest.raises(InvalidTransition):
        apply_transition(order_in(OrderStatus.READY), "preparing", Role.VENDOR)


def test_same_status_is_rejected():
    with pytest.raises(InvalidTransition, match="already"):
        apply_transition(order_in(OrderStatus.CONFIRMED), "confirmed", Role.VENDOR)


@pytest.mark.parametrize("value", ["shipped", "reject", "", "PENDING"])
def test_unknown_status_is_rejected(value):
    with pytest.raises(InvalidTransition):
        apply_transition(order_in(OrderStatus.PENDING), value, Role.ADMIN)


def test_reachability_ignores_actor():
    assert is_reachable(OrderStatus.PENDING, OrderStatus.CONFIRMED)
    assert is_reachable(OrderStatus.EN_ROUTE, OrderStatus.CANCELLED)
    assert not is_reachable(OrderStatus.PENDING, OrderStatus.DELIVERED)
    assert not is_reachable(OrderStatus.CANCELLED, OrderStatus.PENDING)


# ─── Test 5: Customer permissions ──────────────────────────────────────────────
def test_customer_may_cancel_pending_order():
    moved = apply_transition(order_in(OrderStatus.PENDING), "cancelled", Role.CUSTOMER)
    assert moved.status == OrderStatus.CANCELLED


def test_customer_may_not_cancel_after_confirmation():
    with pytest.raises(TransitionForbidden):
        apply_transition(order_in(OrderStatus.CONFIRMED), "cancelled", Role.CUSTOMER)


def test_customer_may_not_advance():
    with pytest.raises(TransitionForbidden):
        apply_transition(order_in(OrderStatus.PENDING), "confirmed", Role.CUSTOMER)


def test_unreachable_target_beats_customer_check():
    """A skip by a customer is an invalid transition, not a permissions problem."""
    with pytest.raises(InvalidTransition) as exc_info:
        apply_transition(order_in(OrderStatus.PENDING), "delivered", Role.CUSTOMER)
    assert not isinstance(exc_info.value, TransitionForbidden)


# ─── Test 6: Legacy values ─────────────────────────────────────────────────────
def test_legacy_out_for_delivery_reads_as_en_route():
    order = order_in("out_for_delivery")
    assert order.status == OrderStatus.EN_ROUTE
    assert apply_transition(order, "delivered").status == OrderStatus.DELIVERED


def test_parse_status_accepts_legacy_target():
    assert parse_status("out_for_delivery") == OrderStatus.EN_ROUTE
    assert parse_status(OrderStatus.READY) == OrderStatus.READY


def test_legacy_target_reaches_en_route():
    moved = apply_transition(order_in(OrderStatus.PICKED_UP), "out_for_delivery", Role.VENDOR)
    assert moved.status == OrderStatus.EN_ROUTE
    assert moved.model_dump(mode="json")["status"] == "en_route", "legacy values are never written back"


# ─── Test 7: Available actions ─────────────────────────────────────────────────
def test_staff_see_advance_and_cancel():
    actions = available_actions(order_in(OrderStatus.PREPARING), Role.VENDOR)
    assert [(a.kind, a.target) for a in actions] == [
        ("advance", OrderStatus.READY),
        ("cancel", OrderStatus.CANCELLED),
    ]


@pytest.mark.parametrize("role", [Role.ADMIN, Role.VENDOR, Role.CUSTOMER])
def test_no_transitions_offered_on_cancelled_order(role):
    assert available_actions(order_in(OrderStatus.CANCELLED), role, CUSTOMER_ID) == []


def test_customer_sees_cancel_only_while_pending():
    pending = available_actions(order_in(OrderStatus.PENDING), Role.CUSTOMER, CUSTOMER_ID)
    confirmed = available_actions(order_in(OrderStatus.CONFIRMED), Role.CUSTOMER, CUSTOMER_ID)
    assert [a.kind for a in pending] == ["cancel"]
    assert confirmed == []


def test_only_the_purchaser_may_rate_a_delivered_order():
    delivered = order_in(OrderStatus.DELIVERED)
    assert can_rate(delivered, CUSTOMER_ID)
    assert not can_rate(delivered, "someone-else")
    assert not can_rate(order_in(OrderStatus.EN_ROUTE), CUSTOMER_ID)
