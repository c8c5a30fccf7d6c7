"""
ChopNow Storefront — Dashboard API
"""
from fastapi import APIRouter, Depends

from chopnow.api.deps import get_composer, get_identity, to_http_exception
from chopnow.core.exceptions import ChopNowError
from chopnow.core.identity import Identity
from chopnow.schemas.dashboard import Dashboard
from chopnow.services.dashboard import DashboardComposer

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=Dashboard)
async def get_dashboard(
    identity: Identity = Depends(get_identity),
    composer: DashboardComposer = Depends(get_composer),
):
    """
    Role-shaped summary for the caller. Data store outages come back as
    zeros with a `notice`; a vendor account without a storefront is a 409.
    """
    try:
        return await composer.compose(identity)
    except ChopNowError as exc:
        raise to_http_exception(exc)
