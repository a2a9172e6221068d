"""Cross-cutting infrastructure: request context, logging, errors."""

from learnhub.core.context import clear_context, get_context, set_request_id
from learnhub.core.logging import configure_structlog, get_logger
from learnhub.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "set_request_id",
]
