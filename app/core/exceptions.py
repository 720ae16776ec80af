"""Application-wide exception classes and handlers.

Every non-2xx response has the body ``{"error", "message", "details"?}``.
``details`` carries a stack trace and is only present in development.
"""

import traceback
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base exception for application errors.

    Args:
        error: Short, stable description of what failed.
        message: Human readable cause.
        status_code: HTTP status returned to the client.
    """

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.error = error
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Invalid query parameter (400)."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(
            error="Invalid request",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NotFoundError(AppError):
    """Unknown route (404)."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            error="Not found",
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class StatisticsError(AppError):
    """An aggregation failed as a whole, e.g. the document store is unreachable (500)."""

    def __init__(self, error: str, message: str):
        super().__init__(error=error, message=message)


def _format_details(exc: BaseException) -> str | None:
    if not settings.is_development:
        return None
    cause = exc.__cause__ or exc
    return "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))


def error_content(error: str, message: str, details: str | None = None) -> dict[str, Any]:
    content: dict[str, Any] = {"error": error, "message": message}
    if details is not None:
        content["details"] = details
    return content


async def app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle AppError and return the shared error body."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "request_failed",
            path=request.url.path,
            error=exc.error,
            message=exc.message,
            cause=type(exc.__cause__ or exc).__name__,
        )
        details = _format_details(exc)
    else:
        logger.warning("request_rejected", path=request.url.path, message=exc.message)
        details = None

    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(exc.error, exc.message, details),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI query validation failures in the shared error body."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "query")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_content("Invalid request", "; ".join(messages)),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error = NotFoundError(f"Route {request.method} {request.url.path} not found")
        return JSONResponse(
            status_code=error.status_code,
            content=error_content(error.error, error.message),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content("Request failed", str(exc.detail)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with a generic error response."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content("Internal server error", str(exc), _format_details(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI app.

    Call this function in main.py to register all exception handlers.
    """
    app.add_exception_handler(AppError, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
