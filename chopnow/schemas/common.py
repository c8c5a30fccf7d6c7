"""
ChopNow Storefront — Shared schema helpers
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel

CENT = Decimal("0.01")


def format_money(value: Decimal) -> str:
    """Two-decimal rendering. Only response serialization calls this."""
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def as_utc(value: datetime | None) -> datetime | None:
    # sqlite hands back naive datetimes; Postgres timestamptz is already aware
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    dependencies: dict[str, str]
