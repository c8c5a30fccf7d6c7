"""
ChopNow Storefront — Order operations

Checkout, status changes, reviews and the per-role order lists. Status rules
live in status_machine; this module loads rows, checks ownership and
persists. A status change is a read followed by an independent write, with
no lock between them.
"""
import logging
from datetime import datetime, timezone

from chopnow.core.exceptions import (
    CheckoutError,
    Conflict,
    Forbidden,
    NotFound,
    VendorNotApproved,
    VendorProfileMissing,
)
from chopnow.core.identity import Identity
from chopnow.db.data_access import DataAccess, Embed, Filter, Ordering
from chopnow.models.order import OrderStatus
from chopnow.models.user import Role
from chopnow.models.vendor import VendorStatus
from chopnow.schemas.order import (
    CheckoutRequest,
    CustomerOrdersResponse,
    LineItem,
    OrderRecord,
    OrderView,
    ReviewRequest,
    ReviewResponse,
    order_total,
)
from chopnow.schemas.vendor import MenuItemRecord, VendorRecord
from chopnow.services.dashboard import find_vendor_for_user, to_orders
from chopnow.services.status_machine import apply_transition, available_actions, can_rate, is_terminal

logger = logging.getLogger(__name__)

NEWEST_FIRST = (Ordering("created_at", descending=True),)
VENDOR_CONTACT = Embed("vendors", ("vendor_name", "address", "phone"))


# ─── Checkout ─────────────────────────────────────────────────────────────────

async def place_order(data: DataAccess, user_id: str, payload: CheckoutRequest) -> OrderRecord:
    """
    Snapshot the cart into a pending order.

    The vendor must be approved and every line must be an available item on
    that vendor's menu. The stored total is computed from the snapshot.
    """
    vendor_rows = await data.query_rows("vendors", [Filter.eq("id", payload.vendor_id)], limit=1)
    if not vendor_rows:
        raise NotFound("vendor", payload.vendor_id)
    vendor = VendorRecord.model_validate(vendor_rows[0])
    if vendor.status != VendorStatus.APPROVED:
        raise VendorNotApproved(vendor.id, vendor.status.value)

    quantities: dict[str, int] = {}
    for line in payload.items:
        quantities[line.menu_item_id] = quantities.get(line.menu_item_id, 0) + line.quantity

    menu_rows = await data.query_rows(
        "menu_items",
        [Filter("id", "in", list(quantities)), Filter.eq("vendor_id", vendor.id)],
    )
    menu = {row["id"]: MenuItemRecord.model_validate(row) for row in menu_rows}

    items: list[LineItem] = []
    for menu_item_id, quantity in quantities.items():
        item = menu.get(menu_item_id)
        if item is None:
            raise CheckoutError(f"Menu item '{menu_item_id}' is not on {vendor.vendor_name}'s menu.")
        if not item.available:
            raise CheckoutError(f"'{item.name}' is currently unavailable.")
        items.append(LineItem(menu_item_id=item.id, name=item.name, quantity=quantity, price=item.price))

    total = order_total(items)
    row = await data.insert_row(
        "orders",
        {
            "user_id": user_id,
            "vendor_id": vendor.id,
            "items": [i.model_dump(mode="json") for i in items],
            "total_amount": total,
            "status": OrderStatus.PENDING.value,
            "delivery_address": payload.delivery_address,
            "delivery_location": payload.delivery_location,
            "notes": payload.notes,
        },
    )
    logger.info("Order %s placed by %s with %s for %s", row["id"], user_id, vendor.id, total)
    return OrderRecord.model_validate(row)


# ─── Reads ────────────────────────────────────────────────────────────────────

async def get_order(data: DataAccess, order_id: str) -> OrderRecord:
    rows = await data.query_rows("orders", [Filter.eq("id", order_id)], limit=1, embed=(VENDOR_CONTACT,))
    if not rows:
        raise NotFound("order", order_id)
    return OrderRecord.model_validate(rows[0])


async def ensure_can_manage(data: DataAccess, order: OrderRecord, identity: Identity) -> Role:
    """
    Admins manage every order, vendors their own storefront's, customers their own.

    Returns the role the caller acts in for this order. Staff who bought the
    order from someone else's storefront act as its customer.
    """
    if identity.role == Role.ADMIN:
        return Role.ADMIN
    purchaser = order.user_id == identity.id
    if identity.role == Role.VENDOR:
        try:
            vendor = await find_vendor_for_user(data, identity.id)
        except VendorProfileMissing:
            if purchaser:
                return Role.CUSTOMER
            raise
        if vendor.id == order.vendor_id:
            return Role.VENDOR
        if purchaser:
            return Role.CUSTOMER
        raise Forbidden("This order belongs to another vendor.")
    if not purchaser:
        raise Forbidden("This order belongs to another customer.")
    return Role.CUSTOMER


def view(order: OrderRecord, identity: Identity, as_role: Role | None = None) -> OrderView:
    role = as_role or identity.role
    return OrderView(order=order, actions=available_actions(order, role, identity.id))


async def orders_for_customer(data: DataAccess, identity: Identity) -> CustomerOrdersResponse:
    rows = await data.query_rows(
        "orders", [Filter.eq("user_id", identity.id)], ordering=NEWEST_FIRST, embed=(VENDOR_CONTACT,)
    )
    active, past = [], []
    for order in to_orders(rows):
        # staff who also buy food see their own purchases as a customer would
        (past if is_terminal(order.status) else active).append(view(order, identity, Role.CUSTOMER))
    return CustomerOrdersResponse(active=active, past=past)


async def orders_for_vendor(data: DataAccess, identity: Identity) -> list[OrderView]:
    vendor = await find_vendor_for_user(data, identity.id)
    rows = await data.query_rows(
        "orders",
        [Filter.eq("vendor_id", vendor.id)],
        ordering=NEWEST_FIRST,
        embed=(Embed("profiles", ("full_name", "phone")),),
    )
    return [view(o, identity) for o in to_orders(rows)]


async def all_orders(data: DataAccess, identity: Identity, limit: int) -> list[OrderView]:
    rows = await data.query_rows(
        "orders",
        ordering=NEWEST_FIRST,
        limit=limit,
        embed=(Embed("vendors", ("vendor_name",)), Embed("profiles", ("full_name",))),
    )
    return [view(o, identity) for o in to_orders(rows)]


# ─── Mutations ────────────────────────────────────────────────────────────────

async def transition_order(data: DataAccess, order_id: str, target: str, identity: Identity) -> OrderView:
    """Validate, persist and return the order as the caller now sees it."""
    order = await get_order(data, order_id)
    acting_as = await ensure_can_manage(data, order, identity)
    updated = apply_transition(order, target, acting_as)
    row = await data.update_row(
        "orders",
        order.id,
        {"status": updated.status.value, "updated_at": updated.updated_at},
    )
    persisted = OrderRecord.model_validate(row)
    logger.info(
        "Order %s: %s → %s by %s (%s)",
        order.id, order.status.value, persisted.status.value, identity.id, acting_as.value,
    )
    # the written row carries no embeds; keep the vendor contact already loaded
    updated = updated.model_copy(update={"status": persisted.status, "updated_at": persisted.updated_at})
    return view(updated, identity, acting_as)


async def review_order(
    data: DataAccess, order_id: str, identity: Identity, payload: ReviewRequest
) -> ReviewResponse:
    order = await get_order(data, order_id)
    if order.user_id != identity.id:
        raise Forbidden("Only the customer who placed the order can rate it.")
    if not can_rate(order, identity.id):
        raise Conflict(f"Order is '{order.status.value}'; only delivered orders can be rated.")
    if await data.count_rows("reviews", [Filter.eq("order_id", order.id)]):
        raise Conflict("This order has already been rated.")

    row = await data.insert_row(
        "reviews",
        {
            "user_id": identity.id,
            "vendor_id": order.vendor_id,
            "order_id": order.id,
            "rating": payload.rating,
            "comment": payload.comment,
            "created_at": datetime.now(tz=timezone.utc),
        },
    )
    return ReviewResponse.model_validate(row)
