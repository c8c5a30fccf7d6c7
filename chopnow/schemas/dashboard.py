"""
ChopNow Storefront — Dashboard schemas

Each stats model carries a `role` tag so Dashboard.stats is a discriminated
union: a dashboard never mixes fields from two roles.
"""
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_serializer

from chopnow.models.user import Role
from chopnow.schemas.common import format_money
from chopnow.schemas.order import OrderRecord


class CustomerStats(BaseModel):
    role: Literal["customer"] = "customer"
    total_orders: int = 0
    active_orders: int = 0
    total_spent: Decimal = Decimal("0")
    # not tracked: the storefront has no favourites feature
    favorite_vendors: int | None = None

    @field_serializer("total_spent")
    def _spent(self, value: Decimal) -> str:
        return format_money(value)


class VendorStats(BaseModel):
    role: Literal["vendor"] = "vendor"
    total_orders: int = 0
    pending_orders: int = 0
    recent_orders: list[OrderRecord] = Field(default_factory=list)
    menu_item_count: int = 0


class AdminStats(BaseModel):
    role: Literal["admin"] = "admin"
    total_users: int = 0
    total_vendors: int = 0
    pending_vendors: int = 0
    total_orders: int = 0
    total_revenue: Decimal = Decimal("0")
    recent_orders: list[OrderRecord] = Field(default_factory=list)

    @field_serializer("total_revenue")
    def _revenue(self, value: Decimal) -> str:
        return format_money(value)


DashboardStats = Annotated[
    Union[CustomerStats, VendorStats, AdminStats], Field(discriminator="role")
]

EMPTY_STATS: dict[Role, type[BaseModel]] = {
    Role.CUSTOMER: CustomerStats,
    Role.VENDOR: VendorStats,
    Role.ADMIN: AdminStats,
}


class Dashboard(BaseModel):
    role: Role
    stats: DashboardStats
    # non-blocking message shown when the data store could not be reached
    notice: str | None = None
