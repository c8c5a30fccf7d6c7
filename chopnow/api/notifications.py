"""
ChopNow Storefront — Order status stream (SSE over Redis pub/sub)

  - transition_order publishes each status change to Redis channel order:{order_id}
  - this endpoint subscribes and relays them to the browser EventSource
  - EventSource cannot send headers, so the token may come as ?access_token=
"""
import asyncio
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from chopnow.api.deps import get_data_access, get_identity, to_http_exception
from chopnow.core.config import get_settings
from chopnow.core.exceptions import ChopNowError
from chopnow.core.identity import Identity
from chopnow.core.redis_client import get_redis
from chopnow.db.data_access import DataAccess
from chopnow.models.order import TERMINAL_STATUSES
from chopnow.schemas.order import OrderRecord
from chopnow.services import orders as order_service
from chopnow.services.notifications import channel_for, event_payload

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["notifications"])

TERMINAL_VALUES = frozenset(s.value for s in TERMINAL_STATUSES)


def _event(payload: dict) -> str:
    return f"event: order_update\ndata: {json.dumps(payload)}\n\n"


async def _sse_generator(order: OrderRecord, request: Request) -> AsyncGenerator[str, None]:
    """Yield the current status, then every change until the order is terminal."""
    yield f"retry: {settings.SSE_RETRY_MILLISECONDS}\n\n"
    if order.status in TERMINAL_STATUSES:
        yield _event(event_payload(order))
        return

    channel_name = channel_for(order.id)
    pubsub = get_redis().pubsub()
    await pubsub.subscribe(channel_name)

    try:
        # subscribed first, so a change landing now is delivered after this snapshot
        yield _event(event_payload(order))

        while True:
            if await request.is_disconnected():
                break

            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if message and message["type"] == "message":
                try:
                    payload = json.loads(message["data"])
                except json.JSONDecodeError:
                    logger.warning("Order %s: dropping malformed event %r", order.id, message["data"])
                    continue

                yield _event(payload)

                if payload.get("status") in TERMINAL_VALUES:
                    break
            else:
                yield ": keepalive\n\n"
                await asyncio.sleep(settings.SSE_KEEPALIVE_INTERVAL_SECONDS)
    finally:
        await pubsub.unsubscribe(channel_name)
        await pubsub.aclose()


@router.get("/stream/{order_id}")
async def stream_order(
    order_id: str,
    request: Request,
    identity: Identity = Depends(get_identity),
    data: DataAccess = Depends(get_data_access),
):
    """
    SSE endpoint for the order tracking page. Only parties to the order may
    listen. Streams until the order is delivered or cancelled.
    """
    try:
        order = await order_service.get_order(data, order_id)
        await order_service.ensure_can_manage(data, order, identity)
    except ChopNowError as exc:
        raise to_http_exception(exc)

    return StreamingResponse(
        _sse_generator(order, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )
