"""
ChopNow Storefront — Admin back-office routes (vendor approval, user directory)
"""
from fastapi import APIRouter, Depends

from chopnow.api.deps import get_data_access, require_role, to_http_exception
from chopnow.core.exceptions import ChopNowError
from chopnow.core.identity import Identity
from chopnow.db.data_access import DataAccess
from chopnow.models.user import Role
from chopnow.models.vendor import VendorStatus
from chopnow.schemas.profile import ProfileRecord
from chopnow.schemas.vendor import VendorRecord, VendorStatusUpdate
from chopnow.services import catalog, profiles

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/vendors", response_model=list[VendorRecord])
async def list_vendors(
    status: VendorStatus | None = None,
    admin: Identity = Depends(require_role(Role.ADMIN)),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await catalog.list_vendors_for_admin(data, status)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.post("/vendors/{vendor_id}/status", response_model=VendorRecord)
async def set_vendor_status(
    vendor_id: str,
    payload: VendorStatusUpdate,
    admin: Identity = Depends(require_role(Role.ADMIN)),
    data: DataAccess = Depends(get_data_access),
):
    """Approve, block or re-open a vendor. No review workflow; last write wins."""
    try:
        return await catalog.set_vendor_status(data, vendor_id, payload.status)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.get("/users", response_model=list[ProfileRecord])
async def list_users(
    role: Role | None = None,
    admin: Identity = Depends(require_role(Role.ADMIN)),
    data: DataAccess = Depends(get_data_access),
):
    """User directory, newest sign-ups first."""
    try:
        return await profiles.list_profiles(data, role)
    except ChopNowError as exc:
        raise to_http_exception(exc)
