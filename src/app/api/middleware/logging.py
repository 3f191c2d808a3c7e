"""Structured request logging middleware.

Every request gets a request_id (the caller's X-Request-ID when present,
otherwise a fresh UUID). The id is bound into structlog contextvars so
mapper, push engine, and CRM client events emitted while serving the request
carry it too, and echoed back in the X-Request-ID response header.

Production renders JSON lines; other environments use the console renderer.
"""

from __future__ import annotations

import logging
import re
import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.app.config import Environment, get_settings

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_FUNNEL_PATH_RE = re.compile(r"/funnels/([^/]+)")


def configure_structlog() -> None:
    """Configure structlog processors based on environment."""
    settings = get_settings()

    logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL.upper())

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if settings.ENVIRONMENT == Environment.production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one request_completed (or request_error) event per request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        path = request.url.path
        context = {"request_id": request_id}
        match = _FUNNEL_PATH_RE.search(path)
        if match:
            context["funnel_id"] = match.group(1)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)
        started = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "request_error",
                method=request.method,
                path=path,
                status_code=500,
                duration_ms=round((time.monotonic() - started) * 1000, 2),
                exc_info=True,
            )
            raise
        finally:
            duration_ms = round((time.monotonic() - started) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = request_id

        if response.status_code >= 500:
            log_method = logger.error
        elif response.status_code >= 400:
            log_method = logger.warning
        else:
            log_method = logger.info
        log_method(
            "request_completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        structlog.contextvars.clear_contextvars()
        return response
