"""
ChopNow Storefront — Order schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from chopnow.models.order import LEGACY_STATUS_MAP, OrderStatus
from chopnow.schemas.common import as_utc, format_money


class LineItem(BaseModel):
    """Snapshot of a menu item taken at checkout."""
    menu_item_id: str | None = None
    name: str
    quantity: int = Field(..., ge=1)
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    @field_serializer("price")
    def _price(self, value: Decimal) -> str:
        return format_money(value)


class OrderRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    vendor_id: str
    items: list[LineItem] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    status: OrderStatus = OrderStatus.PENDING
    delivery_address: str | None = None
    delivery_location: dict[str, Any] | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # embedded relations, present only when the query asked for them
    vendors: dict[str, Any] | None = None
    profiles: dict[str, Any] | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _legacy_status(cls, value: Any) -> Any:
        if isinstance(value, str) and value in LEGACY_STATUS_MAP:
            return LEGACY_STATUS_MAP[value]
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @field_serializer("total_amount")
    def _total(self, value: Decimal) -> str:
        return format_money(value)


def order_total(items: list[LineItem]) -> Decimal:
    return sum((item.subtotal for item in items), Decimal("0"))


class OrderAction(BaseModel):
    kind: Literal["advance", "cancel", "rate"]
    label: str
    target: OrderStatus | None = None


class OrderView(BaseModel):
    order: OrderRecord
    actions: list[OrderAction]


class CustomerOrdersResponse(BaseModel):
    active: list[OrderView]
    past: list[OrderView]


# ─── Requests ─────────────────────────────────────────────────────────────────

class CartLine(BaseModel):
    menu_item_id: str
    quantity: int = Field(..., ge=1, le=50)


class CheckoutRequest(BaseModel):
    vendor_id: str
    items: list[CartLine] = Field(..., min_length=1, max_length=50)
    delivery_address: str | None = Field(None, max_length=255)
    delivery_location: dict[str, Any] | None = None
    notes: str | None = Field(None, max_length=500)


class StatusUpdateRequest(BaseModel):
    # free-form so unknown values reach the state machine and fail there
    status: str = Field(..., examples=["confirmed"])


class ReviewRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=1000)


class ReviewResponse(BaseModel):
    id: str
    order_id: str
    vendor_id: str
    rating: int
    comment: str | None = None
