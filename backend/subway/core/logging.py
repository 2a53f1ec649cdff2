"""structlog setup shared by the API process, the CLI and Alembic.

Everything is routed through the stdlib root logger: structlog events are
wrapped for `ProcessorFormatter`, and records from uvicorn, SQLAlchemy or
Alembic pass through the same processor chain, so both end up in one format
on stdout (and in OTLP when tracing is enabled).
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, ClassVar

import structlog
from opentelemetry import trace
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler

from subway.core.config import settings
from subway.core.telemetry import get_logger_provider

if TYPE_CHECKING:
    from opentelemetry.util.types import Attributes

NOISY_LOGGERS = (
    "sqlalchemy.engine",  # statement echo when DATABASE_ECHO is on
    "sqlalchemy.pool",
    "alembic.runtime.migration",
    "opentelemetry.exporter.otlp.proto.http",
    "uvicorn.access",  # AccessLoggingMiddleware writes the access log
)


def _add_otel_context(
    logger: logging.Logger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Copy the current trace and span ids into the event."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


class AttrFilteredLoggingHandler(LoggingHandler):
    """OTLP LoggingHandler that strips attributes the exporter cannot serialize.

    The OTEL handler bypasses formatters, so the `_logger` attribute that
    structlog's `wrap_for_formatter` leaves on each record reaches the exporter
    unless it is removed here.
    See: https://github.com/open-telemetry/opentelemetry-python/issues/3649
    """

    DROP_ATTRIBUTES: ClassVar[tuple[str, ...]] = ("_logger",)

    @staticmethod
    def _get_attributes(record: logging.LogRecord) -> "Attributes":
        attributes = LoggingHandler._get_attributes(record)
        if attributes is None:
            return None
        return {
            key: value
            for key, value in attributes.items()
            if key not in AttrFilteredLoggingHandler.DROP_ATTRIBUTES
        }


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_otel_context,
    ]


def _build_formatter(level: str, processors: list[structlog.types.Processor]) -> logging.Formatter:
    """JSON lines at DEBUG (easy to grep and ship), coloured console output otherwise."""
    renderer: structlog.types.Processor
    if level == "DEBUG":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def _attach_otlp_handler(root_logger: logging.Logger, provider: LoggerProvider, level: str) -> None:
    root_logger.addHandler(AttrFilteredLoggingHandler(level=getattr(logging, level), logger_provider=provider))


def configure_logging(*, log_level: str = "INFO") -> None:
    """
    Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the root handlers.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
    """
    level = log_level.upper()
    processors = _shared_processors()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(_build_formatter(level, processors))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(stream_handler)
    root_logger.setLevel(getattr(logging, level))

    if provider := get_logger_provider():
        _attach_otlp_handler(root_logger, provider, settings.OTEL_LOG_LEVEL)
        structlog.get_logger(__name__).info(
            "otel_logging_handler_attached",
            level=settings.OTEL_LOG_LEVEL,
            endpoint=settings.OTEL_EXPORTER_OTLP_LOGS_ENDPOINT,
        )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
