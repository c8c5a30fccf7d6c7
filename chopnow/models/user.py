"""
ChopNow Storefront — Profile model

Rows are created by the Supabase Auth sign-up trigger; this service only reads them.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, JSON, func
from enum import Enum as PyEnum
from sqlalchemy.orm import Mapped, mapped_column
from chopnow.db.database import Base


class Role(str, PyEnum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str) -> "Role":
        # the legacy client stored customers as "user"
        if value == "user":
            return cls.CUSTOMER
        return cls(value)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    # customer | vendor | admin ("user" on rows written by the legacy client)
    role: Mapped[str] = mapped_column(String(16), default="customer", nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Profile email={self.email} role={self.role}>"
