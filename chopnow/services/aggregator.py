"""
ChopNow Storefront — Order aggregation

Pure functions from order rows to per-role stats. Every function accepts an
empty sequence and then returns zeros. Sums stay exact Decimals; rounding
happens when the stats models are serialized.
"""
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from decimal import Decimal

from chopnow.models.order import OrderStatus
from chopnow.models.user import Role
from chopnow.schemas.dashboard import AdminStats, CustomerStats, VendorStats
from chopnow.schemas.order import OrderRecord
from chopnow.services.status_machine import is_terminal

DEFAULT_RECENT_LIMIT = 5
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def sum_totals(orders: Iterable[OrderRecord]) -> Decimal:
    return sum((o.total_amount for o in orders), Decimal("0"))


def most_recent(orders: Iterable[OrderRecord], limit: int = DEFAULT_RECENT_LIMIT) -> list[OrderRecord]:
    """Newest first by created_at; rows without a timestamp sort last."""
    if limit <= 0:
        return []
    ranked = sorted(orders, key=lambda o: o.created_at or _EPOCH, reverse=True)
    return ranked[:limit]


def aggregate_customer(orders: Sequence[OrderRecord], viewer_id: str | None = None) -> CustomerStats:
    mine = [o for o in orders if viewer_id is None or o.user_id == viewer_id]
    return CustomerStats(
        total_orders=len(mine),
        active_orders=sum(1 for o in mine if not is_terminal(o.status)),
        total_spent=sum_totals(mine),
    )


def aggregate_vendor(
    orders: Sequence[OrderRecord],
    menu_item_count: int = 0,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> VendorStats:
    return VendorStats(
        total_orders=len(orders),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        recent_orders=most_recent(orders, recent_limit),
        menu_item_count=menu_item_count,
    )


def aggregate_admin(
    orders: Sequence[OrderRecord],
    total_users: int = 0,
    total_vendors: int = 0,
    pending_vendors: int = 0,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> AdminStats:
    return AdminStats(
        total_users=total_users,
        total_vendors=total_vendors,
        pending_vendors=pending_vendors,
        total_orders=len(orders),
        total_revenue=sum_totals(orders),
        recent_orders=most_recent(orders, recent_limit),
    )


def aggregate(
    role: Role,
    orders: Sequence[OrderRecord],
    *,
    viewer_id: str | None = None,
    menu_item_count: int = 0,
    total_users: int = 0,
    total_vendors: int = 0,
    pending_vendors: int = 0,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> CustomerStats | VendorStats | AdminStats:
    if role == Role.CUSTOMER:
        return aggregate_customer(orders, viewer_id)
    if role == Role.VENDOR:
        return aggregate_vendor(orders, menu_item_count, recent_limit)
    return aggregate_admin(orders, total_users, total_vendors, pending_vendors, recent_limit)
