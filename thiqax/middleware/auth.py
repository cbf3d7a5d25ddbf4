"""Authentication middleware for JWT validation."""

import re
from typing import Optional

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from thiqax.config.settings import settings
from thiqax.middleware.error_handler import error_body
from thiqax.services.token import decode_token

logger = structlog.get_logger()


# Paths that don't require authentication
SKIP_AUTH_PATHS = [
    r"^/health",
    r"^/api/v1/health",
    r"^/api/docs",
    r"^/api/openapi\.json",
    r"^/api/redoc",
    r"^/$",
]

SKIP_AUTH_PATTERNS = [re.compile(p) for p in SKIP_AUTH_PATHS]


def should_skip_auth(path: str) -> bool:
    """Check if path should skip authentication."""
    return any(pattern.match(path) for pattern in SKIP_AUTH_PATTERNS)


def get_token_from_request(request: Request) -> Optional[str]:
    """Extract JWT token from request (cookie or Authorization header)."""
    token = request.cookies.get(settings.COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    return None


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates JWT tokens on protected routes."""

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and validate authentication."""
        if should_skip_auth(request.url.path):
            return await call_next(request)

        token = get_token_from_request(request)
        if not token:
            return JSONResponse(status_code=401, content=error_body("Not authenticated"))

        try:
            payload = decode_token(token)
        except JWTError as e:
            logger.warning("Token rejected", error=str(e), path=request.url.path)
            return JSONResponse(status_code=401, content=error_body(str(e)))

        # Store the caller in request state (handlers turn it into an Actor) and on every log line
        request.state.user = payload
        request.state.user_id = payload.get("sub")
        request.state.user_role = payload.get("role")
        structlog.contextvars.bind_contextvars(
            actor_id=request.state.user_id,
            actor_role=request.state.user_role,
        )

        return await call_next(request)
