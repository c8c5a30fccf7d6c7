"""
ChopNow Storefront — Security helper (verifies Supabase-issued JWTs, shared secret)
"""
from jose import jwt, JWTError
from typing import Any
from chopnow.core.config import get_settings

settings = get_settings()


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a Supabase access token. Raises JWTError on failure."""
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
    )


def subject_of(claims: dict[str, Any]) -> str:
    sub = claims.get("sub")
    if not sub:
        raise JWTError("Token has no subject.")
    return str(sub)
