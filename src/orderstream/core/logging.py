"""
Structured logging for the order service.

Every record carries the service identity (name, version, environment) and,
while an HTTP request is being handled, its correlation id. Records render
as colored console lines in development and as one JSON object per line
elsewhere, which is what the log shipper in the deployment expects.
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from orderstream.core.config import Settings, get_settings

SLOW_OPERATION_MS = 500

# Libraries that are chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "aiokafka": logging.WARNING,
    "asyncio": logging.WARNING,
}

_request_id: ContextVar[str] = ContextVar("request_id", default="")


class ServiceContext:
    """Processor stamping each record with the service identity."""

    def __init__(self, settings: Settings):
        self.fields = {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in self.fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def add_request_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Attach the correlation id of the request being served, if any."""
    request_id = _request_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        settings: Application settings (defaults to the cached settings)
    """
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_request_id,
        ServiceContext(settings),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.is_development:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
        force=True,
    )

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Bind a correlation id to the current request context.

    Args:
        request_id: Id received from the caller; a UUID4 is generated if None

    Returns:
        The id now in effect
    """
    request_id = request_id or str(uuid4())
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    return _request_id.get()


def clear_context() -> None:
    """Forget the correlation id once a request is finished."""
    _request_id.set("")


@contextmanager
def log_performance(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    **context: Any,
) -> Iterator[None]:
    """
    Log how long a block took.

    Completion is logged at INFO, or WARNING above ``SLOW_OPERATION_MS``.
    A block that raises is logged at ERROR and the exception propagates.

    Args:
        logger: Logger to write to
        operation: Short operation name, e.g. ``service_startup``
        **context: Extra fields for every record

    Example:
        >>> with log_performance(logger, "service_startup"):
        ...     await check_database_connection(engine)
    """
    started = time.perf_counter()
    try:
        yield
    except BaseException as e:
        logger.error(
            "Operation failed",
            operation=operation,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            error_type=type(e).__name__,
            **context,
        )
        raise

    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    log = logger.warning if duration_ms > SLOW_OPERATION_MS else logger.info
    log("Operation completed", operation=operation, duration_ms=duration_ms, **context)
