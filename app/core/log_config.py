"""structlog configuration and per-request log context.

Every request gets a ``request_id`` plus the dashboard filters it carries
(``endpoint``, ``currency``, ``start_date``, ``end_date``) bound through
``structlog.contextvars``, so aggregation logs emitted deep inside the
services can be traced back to the dashboard call that triggered them.
"""

import logging
import sys
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Query parameters worth carrying on every log line of a request
_CONTEXT_PARAMS = {
    "currency": "currency",
    "startDate": "start_date",
    "endDate": "end_date",
    "limit": "limit",
}

_NOISY_LOGGERS = ("uvicorn.access", "google.auth", "google.api_core", "urllib3", "grpc")


def _select_renderer() -> Any:
    if settings.is_development:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging() -> None:
    """Configure structlog: console output in development, JSON lines elsewhere."""
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _select_renderer(),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.LOG_LEVEL.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def request_context(request: Request) -> dict[str, Any]:
    """Log context for a request: its id, endpoint and dashboard filters."""
    context: dict[str, Any] = {
        "request_id": request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex,
        "endpoint": request.url.path,
    }
    for param, key in _CONTEXT_PARAMS.items():
        value = request.query_params.get(param)
        if value:
            context[key] = value
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind the request context, then log method, status and duration once done."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        logger = structlog.get_logger("http")
        context = request_context(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = context["request_id"]
        await logger.ainfo(
            "request",
            method=request.method,
            status=response.status_code,
            duration_ms=duration_ms,
            client=request.client.host if request.client else "unknown",
        )
        structlog.contextvars.clear_contextvars()

        return response
