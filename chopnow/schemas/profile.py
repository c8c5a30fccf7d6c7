"""
ChopNow Storefront — Profile schemas
"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chopnow.models.user import Role
from chopnow.schemas.common import as_utc


class ProfileRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    full_name: str
    email: str
    role: Role
    phone: str | None = None
    location: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _legacy_role(cls, value: Any) -> Any:
        return Role.parse(value) if isinstance(value, str) else value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class ProfileUpdate(BaseModel):
    """Self-service edit. Role and email are not editable here."""
    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)
    location: dict[str, Any] | None = None
