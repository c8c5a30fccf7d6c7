"""
ChopNow Storefront — Idempotency Key Middleware for checkout

A retried checkout carrying the same Idempotency-Key must not create a second
order:
  - Cache hit  → return the stored response (header X-Idempotency-Replay: true)
  - Cache miss → run checkout, store the response in Redis for 24h
Keys are scoped to the caller so one customer cannot replay another's response.
Server errors are not stored, so the client's retry runs checkout again.
"""
import json
import logging
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from chopnow.core.config import get_settings
from chopnow.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)

IDEMPOTENCY_PREFIX = "idempotent:"
CHECKOUT_ROUTES = {("POST", "/orders"), ("POST", "/orders/")}


def cache_key_for(request: Request, idem_key: str) -> str:
    claims = getattr(request.state, "claims", None) or {}
    return f"{IDEMPOTENCY_PREFIX}{claims.get('sub', 'anonymous')}:{idem_key}"


def _replay(cached: str) -> JSONResponse:
    stored = json.loads(cached)
    return JSONResponse(
        content=stored["body"],
        status_code=stored["status_code"],
        headers={"X-Idempotency-Replay": "true"},
    )


async def _drain(response: Response) -> bytes:
    body = b""
    async for chunk in response.body_iterator:
        body += chunk
    return body


class IdempotencyMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        idem_key = request.headers.get("Idempotency-Key")
        if not idem_key or (request.method, request.url.path) not in CHECKOUT_ROUTES:
            return await call_next(request)

        cache_key = cache_key_for(request, idem_key)
        redis = get_redis()
        try:
            cached = await redis.get(cache_key)
        except RedisError as exc:
            # without the cache we still take the order, just without replay protection
            logger.warning("Idempotency cache unavailable: %s", exc)
            return await call_next(request)

        if cached:
            logger.info("Replaying checkout for %s", cache_key)
            return _replay(cached)

        response = await call_next(request)
        body_bytes = await _drain(response)

        if response.status_code < 500:
            try:
                body = json.loads(body_bytes)
            except ValueError:
                body = body_bytes.decode("utf-8", errors="replace")
            try:
                await redis.setex(
                    cache_key,
                    settings.IDEMPOTENCY_KEY_TTL_SECONDS,
                    json.dumps({"body": body, "status_code": response.status_code}),
                )
            except RedisError as exc:
                logger.warning("Could not store idempotent response %s: %s", cache_key, exc)

        return Response(
            content=body_bytes,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )
