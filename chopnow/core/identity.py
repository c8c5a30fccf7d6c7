"""
ChopNow Storefront — Identity resolution and identity-change channel

Sign-in itself happens against Supabase Auth. Here we turn verified token
claims into {id, role} by reading the caller's profiles row, and fan out
sign-in / sign-out events to whoever subscribed (dashboard feeds).
"""
import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from chopnow.core.exceptions import Unauthenticated
from chopnow.db.data_access import DataAccess, Filter
from chopnow.models.user import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    id: str
    role: Role


class IdentityResolver:
    def __init__(self, data_access: DataAccess):
        self._data = data_access

    async def get_current_identity(self, claims: dict[str, Any] | None) -> Identity | None:
        """Return the caller's identity, or None when there is no usable session."""
        if not claims or not claims.get("sub"):
            return None
        user_id = str(claims["sub"])
        rows = await self._data.query_rows("profiles", [Filter.eq("id", user_id)], limit=1)
        if not rows:
            logger.info("Token subject %s has no profile row", user_id)
            return None
        try:
            role = Role.parse(rows[0]["role"])
        except ValueError:
            logger.warning("Profile %s has unknown role %r", user_id, rows[0]["role"])
            return None
        return Identity(id=user_id, role=role)

    async def require_identity(self, claims: dict[str, Any] | None) -> Identity:
        identity = await self.get_current_identity(claims)
        if identity is None:
            raise Unauthenticated("Sign in to continue.")
        return identity


IdentityListener = Callable[[Identity | None], Awaitable[None] | None]


class IdentityChannel:
    """In-process broadcast of identity changes; None means signed out."""

    def __init__(self):
        self._listeners: list[IdentityListener] = []
        self.current: Identity | None = None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, identity: Identity | None) -> None:
        self.current = identity
        pending = []
        for listener in list(self._listeners):
            outcome = listener(identity)
            if inspect.isawaitable(outcome):
                pending.append(outcome)
        if pending:
            await asyncio.gather(*pending)
