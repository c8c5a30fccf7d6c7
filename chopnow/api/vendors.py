"""
ChopNow Storefront — Vendor browsing, onboarding and menu routes
"""
from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from chopnow.api.deps import get_data_access, get_identity, require_role, to_http_exception
from chopnow.core.exceptions import ChopNowError
from chopnow.core.identity import Identity
from chopnow.db.data_access import DataAccess
from chopnow.models.user import Role
from chopnow.schemas.vendor import (
    MenuItemCreate,
    MenuItemRecord,
    MenuItemUpdate,
    VendorApplication,
    VendorRecord,
)
from chopnow.services import catalog

router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.get("", response_model=list[VendorRecord])
async def list_vendors(
    sort: Literal["name", "newest"] = "name",
    location: str | None = Query(None, max_length=100),
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await catalog.list_vendors(data, sort, location)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.post("/apply", response_model=VendorRecord, status_code=status.HTTP_201_CREATED)
async def apply(
    payload: VendorApplication,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    """Submit a storefront for admin review. One application per account."""
    try:
        return await catalog.apply_as_vendor(data, identity.id, payload)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.post("/me/menu", response_model=MenuItemRecord, status_code=status.HTTP_201_CREATED)
async def add_menu_item(
    payload: MenuItemCreate,
    identity: Identity = Depends(require_role(Role.VENDOR)),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await catalog.add_menu_item(data, identity.id, payload)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.patch("/me/menu/{item_id}", response_model=MenuItemRecord)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    identity: Identity = Depends(require_role(Role.VENDOR)),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await catalog.update_menu_item(data, identity.id, item_id, payload)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.get("/{vendor_id}/menu", response_model=list[MenuItemRecord])
async def vendor_menu(
    vendor_id: str,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await catalog.menu_for_vendor(data, vendor_id)
    except ChopNowError as exc:
        raise to_http_exception(exc)
