"""
ChopNow Storefront — shared test fixtures

Tests run against a throwaway SQLite file (aiosqlite) built from the same
SQLAlchemy metadata the service uses. Tokens are minted locally with the test
secret, in the same shape Supabase Auth issues them.
"""
import os

# ─── Environment (before any chopnow import reads settings) ────────────────────
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SUPABASE_JWT_SECRET"] = "test-secret-do-not-use"
os.environ["REDIS_HOST"] = "127.0.0.1"
os.environ["REDIS_PORT"] = "6399"
os.environ["HEALTH_CHECK_TIMEOUT"] = "1.0"

import time
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from jose import jwt
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from chopnow.api.deps import get_data_access, get_publisher
from chopnow.db.data_access import SqlDataAccess
from chopnow.db.database import Base
from chopnow.main import app

TEST_SECRET = os.environ["SUPABASE_JWT_SECRET"]
BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_token(user_id: str, expires_in: int = 3600, **claims) -> str:
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(time.time()) + expires_in,
        **claims,
    }
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


class Seeder:
    """Inserts rows through the data access layer under test."""

    def __init__(self, data: SqlDataAccess):
        self.data = data
        self._clock = 0

    def _tick(self) -> datetime:
        # strictly increasing timestamps so newest-first ordering is deterministic
        self._clock += 1
        return BASE_TIME + timedelta(minutes=self._clock)

    async def profile(self, role: str = "customer", name: str = "Ada Obi") -> dict:
        user_id = str(uuid.uuid4())
        return await self.data.insert_row(
            "profiles",
            {
                "id": user_id,
                "full_name": name,
                "email": f"{user_id[:8]}@chopnow.test",
                "role": role,
                "created_at": self._tick(),
            },
        )

    async def vendor(self, user_id: str, name: str = "Mama Put", status: str = "approved", **extra) -> dict:
        return await self.data.insert_row(
            "vendors",
            {"user_id": user_id, "vendor_name": name, "status": status, "created_at": self._tick(), **extra},
        )

    async def menu_item(self, vendor_id: str, name: str, price: str, available: bool = True, **extra) -> dict:
        return await self.data.insert_row(
            "menu_items",
            {"vendor_id": vendor_id, "name": name, "price": Decimal(price), "available": available, **extra},
        )

    async def order(self, user_id: str, vendor_id: str, total: str, status: str = "pending") -> dict:
        created = self._tick()
        return await self.data.insert_row(
            "orders",
            {
                "user_id": user_id,
                "vendor_id": vendor_id,
                "items": [{"menu_item_id": None, "name": "Jollof rice", "quantity": 1, "price": total}],
                "total_amount": Decimal(total),
                "status": status,
                "created_at": created,
                "updated_at": created,
            },
        )


class RecordingPublisher:
    """Stands in for the Redis publisher; keeps every published order."""

    def __init__(self):
        self.published = []

    async def publish(self, order) -> bool:
        self.published.append(order)
        return True


# ─── Fixtures ──────────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'chopnow.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def data(engine) -> SqlDataAccess:
    return SqlDataAccess(async_sessionmaker(engine, expire_on_commit=False))


@pytest.fixture
def seed(data) -> Seeder:
    return Seeder(data)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest_asyncio.fixture
async def client(data, publisher):
    app.dependency_overrides[get_data_access] = lambda: data
    app.dependency_overrides[get_publisher] = lambda: publisher
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    return auth
