"""Request logging middleware using structlog."""

import logging
import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from thiqax.config.settings import settings

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

QUIET_PATHS = frozenset({"/health", "/api/v1/health/live", "/api/v1/health/ready"})


def configure_logging(level: str = None) -> None:
    """Configure structlog for structured JSON logging."""
    level_name = (level or settings.LOG_LEVEL).upper()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its request id and the calling actor.

    Wraps AuthMiddleware, so the actor is only known once the request has
    been handled; it is read back from ``request.state`` for the
    completion line.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """Log request and response details."""
        # Reuse the gateway's request id so logs line up across services
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        # Bind request ID to structlog context
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        # Health checks hit every few seconds; keep them out of the info stream
        quiet = request.url.path in QUIET_PATHS
        log_start = logger.debug if quiet else logger.info

        # Start timer
        start_time = time.perf_counter()

        # Log request
        log_start(
            "Request started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params),
            client=request.client.host if request.client else None,
        )

        # Process request
        response = await call_next(request)

        # Calculate duration
        duration_ms = (time.perf_counter() - start_time) * 1000

        # Log response
        if response.status_code >= 400:
            log_end = logger.warning
        else:
            log_end = log_start
        log_end(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            actor_id=getattr(request.state, "user_id", None),
            duration_ms=round(duration_ms, 2),
        )

        # Echo request ID to caller
        response.headers[REQUEST_ID_HEADER] = request_id

        return response
