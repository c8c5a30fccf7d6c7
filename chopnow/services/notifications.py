"""
ChopNow Storefront — Order status events

Each successful transition is published on the Redis channel order:{order_id};
the SSE endpoint relays them to the browser. Publishing is best effort: a
Redis outage must not fail the status change that already happened.
"""
import json
import logging

from redis.exceptions import RedisError

from chopnow.core.redis_client import get_redis
from chopnow.schemas.order import OrderRecord

logger = logging.getLogger(__name__)


def channel_for(order_id: str) -> str:
    return f"order:{order_id}"


def event_payload(order: OrderRecord) -> dict:
    return {
        "order_id": order.id,
        "status": order.status.value,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }


class OrderEventPublisher:
    async def publish(self, order: OrderRecord) -> bool:
        try:
            await get_redis().publish(channel_for(order.id), json.dumps(event_payload(order)))
        except RedisError as exc:
            logger.warning("Order %s: status event not published: %s", order.id, exc)
            return False
        return True
