"""
ChopNow Storefront — Redis connection pool (idempotency cache + order status pub/sub)

Redis is optional at runtime: callers catch RedisError and carry on without it.
"""
import asyncio

import redis.asyncio as aioredis

from chopnow.core.config import get_settings

settings = get_settings()
_pool: aioredis.ConnectionPool | None = None


def get_redis() -> aioredis.Redis:
    """A client on the shared pool. Cheap to call per request."""
    global _pool
    if _pool is None:
        _pool = aioredis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    return aioredis.Redis(connection_pool=_pool)


async def ping(timeout: float) -> None:
    """Raises on an unreachable server or when no reply arrives within `timeout`."""
    await asyncio.wait_for(get_redis().ping(), timeout=timeout)


async def close_redis() -> None:
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
