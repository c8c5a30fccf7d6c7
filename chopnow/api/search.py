"""
ChopNow Storefront — Search route
"""
from fastapi import APIRouter, Depends, Query

from chopnow.api.deps import get_data_access, get_identity, to_http_exception
from chopnow.core.config import get_settings
from chopnow.core.exceptions import ChopNowError
from chopnow.core.identity import Identity
from chopnow.db.data_access import DataAccess
from chopnow.schemas.vendor import SearchResults
from chopnow.services import catalog

settings = get_settings()
router = APIRouter(tags=["search"])


@router.get("/search", response_model=SearchResults)
async def search(
    q: str = Query("", max_length=100, description="Dish, category, vendor or area"),
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await catalog.search(data, q, settings.SEARCH_VENDOR_LIMIT, settings.SEARCH_MENU_ITEM_LIMIT)
    except ChopNowError as exc:
        raise to_http_exception(exc)
