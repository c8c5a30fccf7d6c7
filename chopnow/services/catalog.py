"""
ChopNow Storefront — Vendors, menus and search
"""
import logging
from datetime import datetime, timezone

from chopnow.core.exceptions import Conflict, NotFound
from chopnow.db.data_access import AnyOf, DataAccess, Embed, Filter, Ordering
from chopnow.models.vendor import VendorStatus
from chopnow.schemas.vendor import (
    MenuItemCreate,
    MenuItemRecord,
    MenuItemUpdate,
    SearchResults,
    VendorApplication,
    VendorRecord,
)
from chopnow.services.dashboard import find_vendor_for_user

logger = logging.getLogger(__name__)

VENDOR_SORTS: dict[str, Ordering] = {
    "name": Ordering("vendor_name"),
    "newest": Ordering("created_at", descending=True),
}


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _pattern(term: str) -> str:
    # wildcard characters in the user's input are matched literally as spaces
    cleaned = term.replace("%", " ").replace("_", " ").strip()
    return f"%{cleaned}%"


# ─── Browsing ─────────────────────────────────────────────────────────────────

async def list_vendors(data: DataAccess, sort: str = "name", location: str | None = None) -> list[VendorRecord]:
    """Approved vendors only; `location` is a case-insensitive substring of the address."""
    ordering = VENDOR_SORTS.get(sort, VENDOR_SORTS["name"])
    rows = await data.query_rows(
        "vendors", [Filter.eq("status", VendorStatus.APPROVED.value)], ordering=(ordering,)
    )
    vendors = [VendorRecord.model_validate(r) for r in rows]
    if location and location.lower() != "all":
        needle = location.lower()
        vendors = [v for v in vendors if v.address and needle in v.address.lower()]
    return vendors


async def menu_for_vendor(data: DataAccess, vendor_id: str) -> list[MenuItemRecord]:
    vendors = await data.query_rows(
        "vendors",
        [Filter.eq("id", vendor_id), Filter.eq("status", VendorStatus.APPROVED.value)],
        limit=1,
    )
    if not vendors:
        raise NotFound("vendor", vendor_id)
    rows = await data.query_rows(
        "menu_items",
        [Filter.eq("vendor_id", vendor_id), Filter.eq("available", True)],
        ordering=(Ordering("category"), Ordering("name")),
    )
    return [MenuItemRecord.model_validate(r) for r in rows]


async def search(data: DataAccess, term: str, vendor_limit: int = 10, item_limit: int = 20) -> SearchResults:
    """Match approved vendors and available menu items; a blank term matches nothing."""
    if not term or not term.strip():
        return SearchResults(vendors=[], menu_items=[])
    pattern = _pattern(term)

    vendor_rows = await data.query_rows(
        "vendors",
        [
            Filter.eq("status", VendorStatus.APPROVED.value),
            AnyOf(
                Filter("vendor_name", "ilike", pattern),
                Filter("description", "ilike", pattern),
                Filter("address", "ilike", pattern),
            ),
        ],
        limit=vendor_limit,
    )
    # an available item on a blocked or pending storefront is not orderable,
    # so the approved scope is applied in the query, ahead of the limit
    approved = await data.query_rows("vendors", [Filter.eq("status", VendorStatus.APPROVED.value)])
    if not approved:
        return SearchResults(vendors=[], menu_items=[])
    item_rows = await data.query_rows(
        "menu_items",
        [
            Filter.eq("available", True),
            Filter("vendor_id", "in", [v["id"] for v in approved]),
            AnyOf(
                Filter("name", "ilike", pattern),
                Filter("description", "ilike", pattern),
                Filter("category", "ilike", pattern),
            ),
        ],
        ordering=(Ordering("name"),),
        limit=item_limit,
        embed=(Embed("vendors", ("vendor_name", "address")),),
    )
    return SearchResults(
        vendors=[VendorRecord.model_validate(r) for r in vendor_rows],
        menu_items=[MenuItemRecord.model_validate(r) for r in item_rows],
    )


# ─── Vendor onboarding ────────────────────────────────────────────────────────

async def apply_as_vendor(data: DataAccess, user_id: str, application: VendorApplication) -> VendorRecord:
    if await data.count_rows("vendors", [Filter.eq("user_id", user_id)]):
        raise Conflict("You have already submitted a vendor application.")
    row = await data.insert_row(
        "vendors",
        {**application.model_dump(), "user_id": user_id, "status": VendorStatus.PENDING.value},
    )
    logger.info("Vendor application %s submitted by %s", row["id"], user_id)
    return VendorRecord.model_validate(row)


async def list_vendors_for_admin(data: DataAccess, status: VendorStatus | None = None) -> list[VendorRecord]:
    filters = [Filter.eq("status", status.value)] if status else []
    rows = await data.query_rows("vendors", filters, ordering=(Ordering("created_at", descending=True),))
    return [VendorRecord.model_validate(r) for r in rows]


async def set_vendor_status(data: DataAccess, vendor_id: str, status: VendorStatus) -> VendorRecord:
    """Admin decision; any status may follow any other."""
    if not await data.count_rows("vendors", [Filter.eq("id", vendor_id)]):
        raise NotFound("vendor", vendor_id)
    row = await data.update_row("vendors", vendor_id, {"status": status.value, "updated_at": _now()})
    logger.info("Vendor %s set to %s", vendor_id, status.value)
    return VendorRecord.model_validate(row)


# ─── Menu management (owning vendor) ──────────────────────────────────────────

async def add_menu_item(data: DataAccess, user_id: str, payload: MenuItemCreate) -> MenuItemRecord:
    vendor = await find_vendor_for_user(data, user_id)
    row = await data.insert_row("menu_items", {**payload.model_dump(), "vendor_id": vendor.id})
    return MenuItemRecord.model_validate(row)


async def update_menu_item(
    data: DataAccess, user_id: str, item_id: str, payload: MenuItemUpdate
) -> MenuItemRecord:
    vendor = await find_vendor_for_user(data, user_id)
    owned = await data.count_rows(
        "menu_items", [Filter.eq("id", item_id), Filter.eq("vendor_id", vendor.id)]
    )
    if not owned:
        raise NotFound("menu item", item_id)
    patch = payload.model_dump(exclude_none=True)
    if not patch:
        rows = await data.query_rows("menu_items", [Filter.eq("id", item_id)], limit=1)
        return MenuItemRecord.model_validate(rows[0])
    row = await data.update_row("menu_items", item_id, {**patch, "updated_at": _now()})
    return MenuItemRecord.model_validate(row)
