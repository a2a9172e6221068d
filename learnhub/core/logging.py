"""Structlog configuration.

structlog renders through stdlib logging, so third-party loggers (uvicorn,
the Cassandra driver) share the same processors and outputs:

- stdout, colored console or JSON depending on `log_format`
- `<app>.log` and `<app>.error.log` rotating JSON files when `log_to_file`

Every event carries the request context and has secrets masked.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor

from learnhub.core.context import get_context


if TYPE_CHECKING:
    from learnhub.config.settings import Settings


SENSITIVE_KEYS = ("password", "secret", "token", "api_key", "authorization")

NOISY_LOGGERS = ("uvicorn.access", "uvicorn.error", "cassandra")


# ==============================================================================
# Processors
# ==============================================================================


def add_context_processor(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp request_id, user_id and trace_id on the event."""
    for key, value in get_context().items():
        event_dict.setdefault(key, value)
    return event_dict


def add_app_info_processor(app_name: str, environment: str) -> Processor:
    """Processor stamping application name and environment."""

    def processor(
        logger: logging.Logger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict["app"] = app_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def mask_value(key: str, value: Any) -> Any:
    """Mask a value stored under a sensitive key, recursing into dicts."""
    if isinstance(value, dict):
        return {k: mask_value(k, v) for k, v in value.items()}
    if not isinstance(value, str) or not any(s in key.lower() for s in SENSITIVE_KEYS):
        return value
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}{'*' * (len(value) - 4)}{value[-2:]}"


def filter_sensitive_data(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask tokens, secrets and passwords before rendering."""
    return {key: mask_value(key, value) for key, value in event_dict.items()}


# ==============================================================================
# Setup
# ==============================================================================


def build_shared_processors(settings: "Settings") -> list[Processor]:
    """Processors run for structlog and foreign (stdlib) records alike."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        add_app_info_processor(settings.app_name, settings.environment),
        filter_sensitive_data,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.log_include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )
    return processors


def _attach(
    root: logging.Logger,
    handler: logging.Handler,
    level: str,
    renderer: Processor,
    shared: list[Processor],
) -> None:
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared,
        )
    )
    root.addHandler(handler)


def configure_structlog(
    settings: "Settings",
    log_dir: Path | str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Application settings.
        log_dir: Directory for log files, defaults to `settings.log_dir`.
    """
    shared = build_shared_processors(settings)
    level = settings.log_level

    if settings.log_format == "json":
        console_renderer: Processor = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    _attach(root, logging.StreamHandler(sys.stdout), level, console_renderer, shared)

    if settings.log_to_file:
        directory = Path(log_dir or settings.log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        for filename, file_level in (
            (f"{settings.app_name}.log", level),
            (f"{settings.app_name}.error.log", "ERROR"),
        ):
            handler = RotatingFileHandler(
                directory / filename,
                maxBytes=settings.log_file_max_bytes,
                backupCount=settings.log_file_backup_count,
                encoding="utf-8",
            )
            _attach(root, handler, file_level, structlog.processors.JSONRenderer(), shared)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger."""
    return structlog.get_logger(name)
