"""Request middleware: logging context and access log."""

import time
from collections.abc import Awaitable, Callable, Sequence

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from learnhub.core.context import clear_context, set_request_id, set_trace_id


logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
TRACE_ID_HEADER = "X-Trace-ID"


def trace_id_from_headers(request: Request) -> str | None:
    """Explicit X-Trace-ID, else the trace-id field of a W3C traceparent."""
    trace_id = request.headers.get(TRACE_ID_HEADER)
    if trace_id:
        return trace_id
    # traceparent: {version}-{trace-id}-{parent-id}-{flags}
    parts = request.headers.get("traceparent", "").split("-")
    return parts[1] if len(parts) >= 2 else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request/trace ids for the duration of a request.

    The request id is taken from `X-Request-ID` (or generated) and echoed
    on the response. Requests outside `exclude_paths` are logged with their
    status and duration.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: Sequence[str] = ("/health",),
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = tuple(exclude_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        set_trace_id(trace_id_from_headers(request))
        request.state.request_id = request_id

        path = request.url.path
        access_log = self.log_requests and not path.startswith(self.exclude_paths)
        log = logger.bind(method=request.method, path=path)

        try:
            if access_log:
                log.info(
                    "request_started",
                    client_ip=request.client.host if request.client else None,
                )
            try:
                response = await call_next(request)
            except Exception as e:
                log.exception(
                    "request_failed",
                    error_type=type(e).__name__,
                    duration_ms=self._elapsed_ms(started),
                )
                raise

            if access_log:
                emit = log.warning if response.status_code >= 400 else log.info
                emit(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=self._elapsed_ms(started),
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_context()

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)
