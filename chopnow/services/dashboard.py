"""
ChopNow Storefront — Role dashboard composer

Flow:
  1. Identity resolved by the auth collaborator (None → Unauthenticated)
  2. Role picks one query path: admin (global), vendor (own storefront), customer (own orders)
  3. Independent collaborator calls run concurrently
  4. Rows are aggregated into the role's stats model

A CollaboratorFailure anywhere in step 3 degrades the dashboard to zeros plus
a notice. It is logged, never retried, never fatal.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from chopnow.core.exceptions import ChopNowError, CollaboratorFailure, Unauthenticated, VendorProfileMissing
from chopnow.core.identity import Identity, IdentityChannel
from chopnow.db.data_access import DataAccess, Embed, Filter, Ordering
from chopnow.models.user import Role
from chopnow.models.vendor import VendorStatus
from chopnow.schemas.dashboard import EMPTY_STATS, AdminStats, CustomerStats, Dashboard, VendorStats
from chopnow.schemas.order import OrderRecord
from chopnow.schemas.vendor import VendorRecord
from chopnow.services import aggregator

logger = logging.getLogger(__name__)

DEGRADED_NOTICE = "Some dashboard data could not be loaded. Figures may be incomplete; refresh to try again."
NEWEST_FIRST = (Ordering("created_at", descending=True),)


def to_orders(rows: list[dict]) -> list[OrderRecord]:
    return [OrderRecord.model_validate(r) for r in rows]


async def find_vendor_for_user(data: DataAccess, user_id: str) -> VendorRecord:
    rows = await data.query_rows("vendors", [Filter.eq("user_id", user_id)], limit=1)
    if not rows:
        raise VendorProfileMissing(user_id)
    return VendorRecord.model_validate(rows[0])


async def gather_or_cancel(*calls: Awaitable) -> list:
    """
    asyncio.gather, except the first failure cancels the calls still running.

    Every sibling is awaited before the error propagates, so a second failure
    is retrieved here rather than reported as never retrieved.
    """
    tasks = [asyncio.ensure_future(c) for c in calls]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class DashboardComposer:
    def __init__(self, data_access: DataAccess, recent_limit: int = aggregator.DEFAULT_RECENT_LIMIT):
        self._data = data_access
        self._recent_limit = recent_limit
        self._paths: dict[Role, Callable[[Identity], Awaitable[CustomerStats | VendorStats | AdminStats]]] = {
            Role.ADMIN: self._admin,
            Role.VENDOR: self._vendor,
            Role.CUSTOMER: self._customer,
        }

    async def compose(self, identity: Identity | None) -> Dashboard:
        if identity is None:
            raise Unauthenticated("Sign in to view your dashboard.")

        role = identity.role
        try:
            stats = await self._paths[role](identity)
        except CollaboratorFailure:
            logger.exception("Dashboard for %s (%s) degraded to empty", identity.id, role.value)
            return Dashboard(role=role, stats=EMPTY_STATS[role](), notice=DEGRADED_NOTICE)
        return Dashboard(role=role, stats=stats)

    # ── Role paths ────────────────────────────────────────────────────────────
    # Totals come from plain rows; only the recent slice resolves embeds.

    async def _admin(self, identity: Identity) -> AdminStats:
        users, vendors, pending, order_rows, recent_rows = await gather_or_cancel(
            self._data.count_rows("profiles"),
            self._data.count_rows("vendors"),
            self._data.count_rows("vendors", [Filter.eq("status", VendorStatus.PENDING.value)]),
            self._data.query_rows("orders"),
            self._recent([], (Embed("vendors", ("vendor_name",)), Embed("profiles", ("full_name",)))),
        )
        stats = aggregator.aggregate_admin(
            to_orders(order_rows),
            total_users=users,
            total_vendors=vendors,
            pending_vendors=pending,
            recent_limit=0,
        )
        return stats.model_copy(update={"recent_orders": to_orders(recent_rows)})

    async def _vendor(self, identity: Identity) -> VendorStats:
        vendor = await find_vendor_for_user(self._data, identity.id)
        scope = [Filter.eq("vendor_id", vendor.id)]
        order_rows, recent_rows, menu_count = await gather_or_cancel(
            self._data.query_rows("orders", scope),
            self._recent(scope, (Embed("profiles", ("full_name",)),)),
            self._data.count_rows("menu_items", scope),
        )
        stats = aggregator.aggregate_vendor(to_orders(order_rows), menu_count, recent_limit=0)
        return stats.model_copy(update={"recent_orders": to_orders(recent_rows)})

    def _recent(self, scope: list[Filter], embed: tuple[Embed, ...]) -> Awaitable[list[dict]]:
        return self._data.query_rows(
            "orders", scope, ordering=NEWEST_FIRST, limit=self._recent_limit, embed=embed
        )

    async def _customer(self, identity: Identity) -> CustomerStats:
        order_rows = await self._data.query_rows(
            "orders", [Filter.eq("user_id", identity.id)], ordering=NEWEST_FIRST
        )
        return aggregator.aggregate_customer(to_orders(order_rows), identity.id)


class DashboardFeed:
    """
    Keeps one dashboard in sync with the identity channel.

    Every refresh takes a generation number; a result is applied only if no
    newer refresh started and the feed is still open. This keeps a slow
    response for a previous identity (or an unmounted view) from overwriting
    what is on screen.
    """

    def __init__(self, composer: DashboardComposer, channel: IdentityChannel):
        self._composer = composer
        self._generation = 0
        self._closed = False
        self.current: Dashboard | None = None
        self.error: ChopNowError | None = None
        self._unsubscribe = channel.subscribe(self.refresh)

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_live(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def refresh(self, identity: Identity | None) -> bool:
        """Recompose for `identity`. Returns False when the result was discarded as stale."""
        self._generation += 1
        generation = self._generation
        try:
            dashboard = await self._composer.compose(identity)
        except (Unauthenticated, VendorProfileMissing) as exc:
            if not self._is_live(generation):
                return False
            self.current, self.error = None, exc
            return True

        if not self._is_live(generation):
            logger.debug("Discarding stale dashboard (generation %d)", generation)
            return False
        self.current, self.error = dashboard, None
        return True

    def close(self) -> None:
        self._closed = True
        self._unsubscribe()
