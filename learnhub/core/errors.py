"""Application-wide exception handlers.

Every error leaves the API in the same JSON envelope::

    {"error": true, "message": ..., "status_code": ..., "request_id": ...}

Server-side failures are logged with full detail but answered with a
generic message.
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnhub.core.context import get_request_id


logger = structlog.get_logger(__name__)

GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again later."


def error_response(
    request: Request,
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> ORJSONResponse:
    """Build the error envelope for a request."""
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    return ORJSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
            "request_id": request_id,
            **extra,
        },
        headers=headers,
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=str(exc.detail),
        path=request.url.path,
        method=request.method,
    )
    message = (
        str(exc.detail)
        if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
        else GENERIC_SERVER_ERROR
    )
    return error_response(
        request, exc.status_code, message, headers=getattr(exc, "headers", None)
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    errors = exc.errors()
    logger.warning(
        "validation_error",
        errors=errors,
        path=request.url.path,
        method=request.method,
    )
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", [])),
            "message": err.get("msg", "Invalid value"),
        }
        for err in errors
    ]
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        details=details,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_ERROR
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on an application."""
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
