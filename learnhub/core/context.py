"""Per-request context shared with the log processors.

Values live in contextvars, so concurrent requests never see each other's
ids. `RequestContextMiddleware` fills them in and clears them when the
response is done.
"""

from contextvars import ContextVar
from uuid import UUID, uuid4

_CONTEXT: dict[str, ContextVar[str | None]] = {
    name: ContextVar(name, default=None)
    for name in ("request_id", "user_id", "trace_id")
}

def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID, generating one when the caller sent none."""
    value = request_id or str(uuid4())
    _CONTEXT["request_id"].set(value)
    return value

def get_request_id() -> str | None:
    return _CONTEXT["request_id"].get()

def set_user_id(user_id: str | UUID | None) -> None:
    _CONTEXT["user_id"].set(str(user_id) if user_id is not None else None)

def set_trace_id(trace_id: str | None) -> None:
    _CONTEXT["trace_id"].set(trace_id)

def get_context() -> dict[str, str]:
    """Populated context values only."""
    values = {name: var.get() for name, var in _CONTEXT.items()}
    return {name: value for name, value in values.items() if value}

def clear_context() -> None:
    for var in _CONTEXT.values():
        var.set(None)
