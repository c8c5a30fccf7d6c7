"""
ChopNow Storefront — Vendor, menu and search schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from chopnow.models.vendor import VendorStatus
from chopnow.schemas.common import format_money


class VendorRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    vendor_name: str
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    image_url: str | None = None
    location: dict[str, Any] | None = None
    status: VendorStatus = VendorStatus.PENDING
    created_at: datetime | None = None


class MenuItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    vendor_id: str
    name: str
    description: str | None = None
    price: Decimal
    image_url: str | None = None
    available: bool = True
    category: str | None = None
    prep_time: int | None = None
    vendors: dict[str, Any] | None = None

    @field_serializer("price")
    def _price(self, value: Decimal) -> str:
        return format_money(value)


class VendorApplication(BaseModel):
    vendor_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    address: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=32)
    image_url: str | None = Field(None, max_length=512)
    location: dict[str, Any] | None = None


class VendorStatusUpdate(BaseModel):
    status: VendorStatus


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    image_url: str | None = Field(None, max_length=512)
    category: str | None = Field(None, max_length=64)
    prep_time: int | None = Field(None, ge=0)
    available: bool = True


class MenuItemUpdate(BaseModel):
    available: bool | None = None
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)


class SearchResults(BaseModel):
    vendors: list[VendorRecord]
    menu_items: list[MenuItemRecord]
