"""
ChopNow Storefront — JWT Authentication Middleware
Validates the Supabase access token on all protected routes; returns 401 on failure.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from jose import JWTError

from chopnow.core.security import decode_token, subject_of

# Paths that do NOT require authentication
PUBLIC_PATHS = {
    "/health",
    "/metrics",
    "/",
    "/docs",
    "/openapi.json",
}

# EventSource cannot set headers, so streams may pass ?access_token=
QUERY_TOKEN_PREFIXES = ("/notifications/stream/",)


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Intercepts every request. Validates the JWT Bearer token.
    Attaches decoded claims to request.state.claims on success.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if path in PUBLIC_PATHS or path.startswith("/metrics"):
            return await call_next(request)

        token = None
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header.split(" ", 1)[1]
        elif path.startswith(QUERY_TOKEN_PREFIXES):
            token = request.query_params.get("access_token")

        if not token:
            return _unauthorized("Missing or invalid Authorization header. Expected: Bearer <token>")

        try:
            claims = decode_token(token)
            subject_of(claims)
        except JWTError as exc:
            return _unauthorized(f"Invalid or expired JWT: {str(exc)}")

        request.state.claims = claims
        return await call_next(request)
