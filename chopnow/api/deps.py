"""
ChopNow Storefront — Shared route dependencies and domain → HTTP error mapping
"""
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from chopnow.core.config import get_settings
from chopnow.core.exceptions import (
    ChopNowError,
    CheckoutError,
    CollaboratorFailure,
    Conflict,
    Forbidden,
    InvalidTransition,
    NotFound,
    TerminalStateError,
    TransitionForbidden,
    Unauthenticated,
    VendorNotApproved,
    VendorProfileMissing,
)
from chopnow.core.identity import Identity, IdentityResolver
from chopnow.db.data_access import DataAccess, SqlDataAccess
from chopnow.db.database import async_session
from chopnow.models.user import Role
from chopnow.services.dashboard import DashboardComposer
from chopnow.services.notifications import OrderEventPublisher

settings = get_settings()

# most specific first: TerminalStateError and TransitionForbidden are InvalidTransitions
_STATUS_CODES: list[tuple[type[ChopNowError], int]] = [
    (Unauthenticated, status.HTTP_401_UNAUTHORIZED),
    (TransitionForbidden, status.HTTP_403_FORBIDDEN),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (TerminalStateError, status.HTTP_409_CONFLICT),
    (Conflict, status.HTTP_409_CONFLICT),
    (VendorNotApproved, status.HTTP_409_CONFLICT),
    (VendorProfileMissing, status.HTTP_409_CONFLICT),
    (InvalidTransition, status.HTTP_400_BAD_REQUEST),
    (CheckoutError, status.HTTP_400_BAD_REQUEST),
    (CollaboratorFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def to_http_exception(exc: ChopNowError) -> HTTPException:
    code = next((c for kind, c in _STATUS_CODES if isinstance(exc, kind)), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, CollaboratorFailure):
        # don't leak driver messages to clients
        return HTTPException(status_code=code, detail="Data store unavailable. Please retry.")
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=code, detail=str(exc), headers=headers)


@lru_cache()
def get_data_access() -> DataAccess:
    return SqlDataAccess(async_session)


@lru_cache()
def get_publisher() -> OrderEventPublisher:
    return OrderEventPublisher()


def get_composer(data: DataAccess = Depends(get_data_access)) -> DashboardComposer:
    return DashboardComposer(data, recent_limit=settings.RECENT_ORDERS_LIMIT)


async def get_identity(request: Request, data: DataAccess = Depends(get_data_access)) -> Identity:
    claims = getattr(request.state, "claims", None)
    try:
        return await IdentityResolver(data).require_identity(claims)
    except ChopNowError as exc:
        raise to_http_exception(exc)


def require_role(*roles: Role):
    allowed = frozenset(roles)

    async def dependency(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{' or '.join(sorted(r.value for r in allowed)).capitalize()} role required",
            )
        return identity

    return dependency
