"""
ChopNow Storefront — Profile routes (the caller's own account)
"""
from fastapi import APIRouter, Depends

from chopnow.api.deps import get_data_access, get_identity, to_http_exception
from chopnow.core.exceptions import ChopNowError
from chopnow.core.identity import Identity
from chopnow.db.data_access import DataAccess
from chopnow.schemas.profile import ProfileRecord, ProfileUpdate
from chopnow.services import profiles

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/me", response_model=ProfileRecord)
async def my_profile(
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await profiles.get_profile(data, identity.id)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.patch("/me", response_model=ProfileRecord)
async def update_my_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    """Name, phone and location only. Sending `role` or `email` is a 422."""
    try:
        return await profiles.update_profile(data, identity.id, payload)
    except ChopNowError as exc:
        raise to_http_exception(exc)
