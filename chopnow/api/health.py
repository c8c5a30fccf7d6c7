"""
ChopNow Storefront — Health endpoint

Postgres decides health. Redis only backs idempotency and order events, so an
outage there is reported but does not take the service out of rotation.
"""
import asyncio
from collections.abc import Awaitable, Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from chopnow.core import redis_client
from chopnow.core.config import get_settings
from chopnow.db.database import engine
from chopnow.schemas.common import HealthResponse

settings = get_settings()
router = APIRouter(tags=["health"])


async def _postgres() -> None:
    async with engine.connect() as conn:
        await asyncio.wait_for(conn.execute(text("SELECT 1")), timeout=settings.HEALTH_CHECK_TIMEOUT)


async def _redis() -> None:
    await redis_client.ping(settings.HEALTH_CHECK_TIMEOUT)


async def _probe(check: Callable[[], Awaitable[None]]) -> str:
    try:
        await check()
    except Exception as e:
        return f"error: {str(e)[:100]}"
    return "ok"


@router.get("/health", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
async def health_check():
    postgres, redis = await asyncio.gather(_probe(_postgres), _probe(_redis))
    healthy = postgres == "ok"

    return JSONResponse(
        content=HealthResponse(
            status="healthy" if healthy else "degraded",
            service=settings.SERVICE_NAME,
            version=settings.SERVICE_VERSION,
            dependencies={"postgresql": postgres, "redis": redis},
        ).model_dump(),
        status_code=200 if healthy else 503,
    )
