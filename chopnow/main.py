"""
ChopNow Storefront — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from chopnow.core.config import get_settings
from chopnow.core.redis_client import close_redis
from chopnow.db.database import Base, engine
from chopnow.middleware.auth import JWTAuthMiddleware
from chopnow.middleware.idempotency import IdempotencyMiddleware
from chopnow.api import admin, dashboard, health, notifications, orders, profile, search, vendors

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")
    yield
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="ChopNow Storefront",
    description="Food ordering: vendors, menus, checkout, order status and role dashboards.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last added runs first: Auth sets request.state.claims, Idempotency scopes keys by sub
app.add_middleware(IdempotencyMiddleware)
app.add_middleware(JWTAuthMiddleware)

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(dashboard.router)
app.include_router(orders.router)
app.include_router(vendors.router)
app.include_router(profile.router)
app.include_router(admin.router)
app.include_router(search.router)
app.include_router(notifications.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
