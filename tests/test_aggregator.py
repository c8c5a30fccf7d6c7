"""
Order aggregation tests

Tests:
  1. Empty input yields zeros for every role
  2. Customer stats (counts, active, exact spend)
  3. Vendor stats (pending count, recent orders newest first)
  4. Admin stats (revenue, recent limit)
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from chopnow.models.order import OrderStatus
from chopnow.models.user import Role
from chopnow.services.aggregator import aggregate, aggregate_admin, aggregate_customer, aggregate_vendor, most_recent
from chopnow.schemas.order import OrderRecord

START = datetime(2025, 3, 1, tzinfo=timezone.utc)


def make_orders(*specs) -> list[OrderRecord]:
    """specs: (total, status) pairs, created one hour apart, oldest first."""
    return [
        OrderRecord(
            id=f"ord-{i}",
            user_id="cust-1",
            vendor_id="ven-1",
            total_amount=total,
            status=status,
            created_at=START + timedelta(hours=i),
        )
        for i, (total, status) in enumerate(specs)
    ]


# ─── Test 1: Empty input ───────────────────────────────────────────────────────
def test_empty_input_yields_zeros_for_every_role():
    customer = aggregate(Role.CUSTOMER, [])
    vendor = aggregate(Role.VENDOR, [])
    admin = aggregate(Role.ADMIN, [])

    assert (customer.total_orders, customer.active_orders, customer.total_spent) == (0, 0, Decimal("0"))
    assert (vendor.total_orders, vendor.pending_orders, vendor.recent_orders) == (0, 0, [])
    assert (admin.total_orders, admin.total_revenue, admin.recent_orders) == (0, Decimal("0"), [])


# ─── Test 2: Customer ──────────────────────────────────────────────────────────
def test_customer_stats():
    orders = make_orders(
        ("20.00", OrderStatus.DELIVERED),
        ("35.00", OrderStatus.PENDING),
        ("10.00", OrderStatus.CANCELLED),
    )
    stats = aggregate_customer(orders, "cust-1")
    assert stats.total_orders == 3
    assert stats.active_orders == 1, "only non-terminal orders are active"
    assert stats.total_spent == Decimal("65.00")
    assert stats.favorite_vendors is None


def test_spend_is_exact_and_rendered_with_two_decimals():
    orders = make_orders(("0.10", OrderStatus.PENDING), ("0.20", OrderStatus.PENDING))
    stats = aggregate_customer(orders)
    assert stats.total_spent == Decimal("0.30")
    assert stats.model_dump(mode="json")["total_spent"] == "0.30"


def test_customer_stats_ignore_other_customers_orders():
    orders = make_orders(("20.00", OrderStatus.PENDING))
    orders.append(orders[0].model_copy(update={"id": "ord-x", "user_id": "cust-2"}))
    assert aggregate_customer(orders, "cust-1").total_orders == 1


# ─── Test 3: Vendor ────────────────────────────────────────────────────────────
def test_vendor_stats():
    orders = make_orders(
        ("12.00", OrderStatus.PENDING),
        ("8.00", OrderStatus.PREPARING),
        ("5.00", OrderStatus.PENDING),
    )
    stats = aggregate_vendor(orders, menu_item_count=7, recent_limit=2)
    assert stats.total_orders == 3
    assert stats.pending_orders == 2
    assert stats.menu_item_count == 7
    assert [o.id for o in stats.recent_orders] == ["ord-2", "ord-1"], "newest first, capped at the limit"


def test_most_recent_puts_undated_orders_last():
    orders = make_orders(("1.00", OrderStatus.PENDING), ("2.00", OrderStatus.PENDING))
    undated = orders[0].model_copy(update={"id": "ord-undated", "created_at": None})
    ranked = most_recent([undated, *orders], limit=5)
    assert [o.id for o in ranked] == ["ord-1", "ord-0", "ord-undated"]


def test_most_recent_with_zero_limit():
    assert most_recent(make_orders(("1.00", OrderStatus.PENDING)), limit=0) == []


# ─── Test 4: Admin ─────────────────────────────────────────────────────────────
def test_admin_stats():
    orders = make_orders(*[("10.50", OrderStatus.DELIVERED)] * 7)
    stats = aggregate_admin(orders, total_users=12, total_vendors=3, pending_vendors=1, recent_limit=5)
    assert stats.total_orders == 7
    assert stats.total_revenue == Decimal("73.50")
    assert (stats.total_users, stats.total_vendors, stats.pending_vendors) == (12, 3, 1)
    assert [o.id for o in stats.recent_orders] == ["ord-6", "ord-5", "ord-4", "ord-3", "ord-2"]
