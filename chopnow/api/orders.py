"""
ChopNow Storefront — Orders API

Flow for a status change:
  1. JWT validated by middleware, role resolved from profiles
  2. Order loaded and ownership checked (admin: any, vendor: own storefront,
     purchaser: own order, acting as its customer)
  3. Status machine validates the transition
  4. New status persisted, event published to order:{id}
"""
from fastapi import APIRouter, Depends, Query, status

from chopnow.api.deps import get_data_access, get_identity, get_publisher, require_role, to_http_exception
from chopnow.core.exceptions import ChopNowError
from chopnow.core.identity import Identity
from chopnow.db.data_access import DataAccess
from chopnow.models.user import Role
from chopnow.schemas.order import (
    CheckoutRequest,
    CustomerOrdersResponse,
    OrderRecord,
    OrderView,
    ReviewRequest,
    ReviewResponse,
    StatusUpdateRequest,
)
from chopnow.services import orders as order_service
from chopnow.services.notifications import OrderEventPublisher

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderRecord, status_code=status.HTTP_201_CREATED)
async def checkout(
    payload: CheckoutRequest,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    """Place an order. Send an Idempotency-Key header to make retries safe."""
    try:
        return await order_service.place_order(data, identity.id, payload)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.get("/mine", response_model=CustomerOrdersResponse)
async def my_orders(
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    """The caller's own orders, split into active and past."""
    try:
        return await order_service.orders_for_customer(data, identity)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.get("/vendor", response_model=list[OrderView])
async def vendor_orders(
    identity: Identity = Depends(require_role(Role.VENDOR)),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await order_service.orders_for_vendor(data, identity)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.get("", response_model=list[OrderView])
async def all_orders(
    limit: int = Query(50, ge=1, le=500),
    identity: Identity = Depends(require_role(Role.ADMIN)),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await order_service.all_orders(data, identity, limit)
    except ChopNowError as exc:
        raise to_http_exception(exc)


@router.get("/{order_id}", response_model=OrderView)
async def get_order(
    order_id: str,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    try:
        order = await order_service.get_order(data, order_id)
        acting_as = await order_service.ensure_can_manage(data, order, identity)
    except ChopNowError as exc:
        raise to_http_exception(exc)
    return order_service.view(order, identity, acting_as)


@router.post("/{order_id}/status", response_model=OrderView)
async def update_status(
    order_id: str,
    payload: StatusUpdateRequest,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
    publisher: OrderEventPublisher = Depends(get_publisher),
):
    """
    400 for an unknown or unreachable status, 403 when the caller may not make
    this change, 409 once the order is delivered or cancelled.
    """
    try:
        moved = await order_service.transition_order(data, order_id, payload.status, identity)
    except ChopNowError as exc:
        raise to_http_exception(exc)

    await publisher.publish(moved.order)
    return moved


@router.post("/{order_id}/review", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def review_order(
    order_id: str,
    payload: ReviewRequest,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    try:
        return await order_service.review_order(data, order_id, identity, payload)
    except ChopNowError as exc:
        raise to_http_exception(exc)
