"""
ChopNow Storefront — Order status machine

Lifecycle (canonical long form):
  pending → confirmed → preparing → ready → picked_up → en_route → delivered
  any non-terminal state → cancelled

Transitions are pure: apply_transition returns a new record and never touches
the data store. Persisting the result and notifying listeners is the caller's job.
"""
from datetime import datetime, timezone

from chopnow.core.exceptions import InvalidTransition, TerminalStateError, TransitionForbidden
from chopnow.models.order import LEGACY_STATUS_MAP, TERMINAL_STATUSES, OrderStatus
from chopnow.models.user import Role
from chopnow.schemas.order import OrderAction, OrderRecord

FORWARD_PATH: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PICKED_UP,
    OrderStatus.EN_ROUTE,
    OrderStatus.DELIVERED,
)

NEXT_STATUS: dict[OrderStatus, OrderStatus] = {
    current: following for current, following in zip(FORWARD_PATH, FORWARD_PATH[1:])
}

ADVANCE_LABELS: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "Confirm order",
    OrderStatus.PREPARING: "Start preparing",
    OrderStatus.READY: "Mark ready",
    OrderStatus.PICKED_UP: "Mark picked up",
    OrderStatus.EN_ROUTE: "Send out for delivery",
    OrderStatus.DELIVERED: "Mark delivered",
}

STAFF_ROLES = frozenset({Role.ADMIN, Role.VENDOR})


def parse_status(value: str | OrderStatus) -> OrderStatus:
    """Resolve a canonical or legacy status value; anything else is rejected."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        pass
    if value in LEGACY_STATUS_MAP:
        return LEGACY_STATUS_MAP[value]
    raise InvalidTransition(None, str(value), f"Unknown order status '{value}'.")


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def next_status(status: OrderStatus) -> OrderStatus | None:
    return NEXT_STATUS.get(status)


def is_reachable(current: OrderStatus, target: OrderStatus) -> bool:
    """Forward-or-cancel rule, ignoring who is asking."""
    if is_terminal(current):
        return False
    return target == OrderStatus.CANCELLED or NEXT_STATUS.get(current) == target


def apply_transition(
    order: OrderRecord,
    target: str | OrderStatus,
    actor_role: Role | None = None,
) -> OrderRecord:
    """
    Move an order to `target`.

    Raises TerminalStateError when the order is delivered or cancelled,
    InvalidTransition when `target` is unknown or not reachable, and
    TransitionForbidden when a customer asks for anything but cancelling a
    pending order. `actor_role=None` applies the lifecycle rule alone.
    """
    current = order.status
    if is_terminal(current):
        raise TerminalStateError(current.value, str(getattr(target, "value", target)))

    target_status = parse_status(target)
    if target_status == current:
        raise InvalidTransition(current.value, target_status.value, f"Order is already '{current.value}'.")
    if not is_reachable(current, target_status):
        raise InvalidTransition(current.value, target_status.value)

    if actor_role == Role.CUSTOMER and not (
        current == OrderStatus.PENDING and target_status == OrderStatus.CANCELLED
    ):
        raise TransitionForbidden(
            current.value,
            target_status.value,
            "Customers may only cancel an order while it is pending.",
        )

    return order.model_copy(
        update={"status": target_status, "updated_at": datetime.now(tz=timezone.utc)}
    )


def available_actions(
    order: OrderRecord,
    viewer_role: Role,
    viewer_id: str | None = None,
) -> list[OrderAction]:
    """Actions the UI may offer this viewer for this order."""
    status = order.status
    actions: list[OrderAction] = []

    if viewer_role in STAFF_ROLES:
        if is_terminal(status):
            return actions
        following = NEXT_STATUS.get(status)
        if following is not None:
            actions.append(OrderAction(kind="advance", label=ADVANCE_LABELS[following], target=following))
        actions.append(OrderAction(kind="cancel", label="Cancel order", target=OrderStatus.CANCELLED))
        return actions

    if viewer_id is not None and viewer_id != order.user_id:
        return actions
    if status == OrderStatus.PENDING:
        actions.append(OrderAction(kind="cancel", label="Cancel order", target=OrderStatus.CANCELLED))
    elif status == OrderStatus.DELIVERED:
        actions.append(OrderAction(kind="rate", label="Rate order"))
    return actions


def can_rate(order: OrderRecord, viewer_id: str) -> bool:
    return any(a.kind == "rate" for a in available_actions(order, Role.CUSTOMER, viewer_id))
