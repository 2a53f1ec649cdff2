"""OpenTelemetry tracing and log export.

Providers are built on first use rather than at import so that each forked
uvicorn worker creates its own exporters and background threads.
"""

import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider as otel_set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

from subway import __version__
from subway.core.config import require_config, settings

if TYPE_CHECKING:
    from opentelemetry.trace.span import Span

logger = structlog.get_logger(__name__)

P = TypeVar("P", TracerProvider, LoggerProvider)

# OpenTelemetry attribute values can be primitives or lists of primitives
AttributeValue = str | int | float | bool | list[str] | list[int] | list[float] | list[bool]


class _ProviderSlot(Generic[P]):
    """Holds one lazily created provider per process."""

    def __init__(self, factory: Callable[[], P]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self.provider: P | None = None

    def get(self) -> P | None:
        if not settings.OTEL_ENABLED:
            return None
        if self.provider is None:
            with self._lock:
                if self.provider is None:  # another thread may have won the race
                    self.provider = self._factory()
        return self.provider

    def shutdown(self) -> bool:
        """Flush and shut the provider down if one was created."""
        if self.provider is None:
            return False
        self.provider.shutdown()
        return True

    def reset(self) -> None:
        self.provider = None


def _build_resource() -> Resource:
    return Resource(
        attributes={
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": __version__,
            "deployment.environment": settings.OTEL_ENVIRONMENT,
        }
    )


def _parse_otlp_headers(headers_str: str) -> dict[str, str]:
    """
    Parse OTLP headers from comma-separated key=value pairs.

    Example:
        >>> _parse_otlp_headers("Authorization=Bearer token123,X-Scope=subway")
        {'Authorization': 'Bearer token123', 'X-Scope': 'subway'}
    """
    headers: dict[str, str] = {}
    for raw_pair in headers_str.split(","):
        pair = raw_pair.strip()
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        if not sep:
            logger.warning("otel_malformed_header", pair=pair)
            continue
        headers[key.strip()] = value.strip()
    return headers


def _otlp_headers() -> dict[str, str]:
    return _parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS or "")


def _create_tracer_provider() -> TracerProvider:
    """
    Build the TracerProvider with an OTLP span exporter.

    Raises:
        ValueError: If the OTLP traces endpoint is missing outside DEBUG mode
    """
    if not settings.DEBUG:
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")

    provider = TracerProvider(resource=_build_resource())
    endpoint = settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT
    if not endpoint:
        logger.warning("otel_no_traces_endpoint_configured", message="traces will not be exported")
        return provider

    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=_otlp_headers())))
    logger.info(
        "otel_tracer_provider_created",
        endpoint=endpoint,
        service_name=settings.OTEL_SERVICE_NAME,
        environment=settings.OTEL_ENVIRONMENT,
    )
    return provider


def _create_logger_provider() -> LoggerProvider:
    """Build the LoggerProvider; the logs endpoint is optional since logs also go to stdout."""
    provider = LoggerProvider(resource=_build_resource())
    endpoint = settings.OTEL_EXPORTER_OTLP_LOGS_ENDPOINT
    if not endpoint:
        logger.warning("otel_no_logs_endpoint_configured", message="logs will not be exported to OTLP")
        return provider

    exporter = OTLPLogExporter(endpoint=endpoint, headers=_otlp_headers())
    provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    logger.info("otel_logger_provider_created", endpoint=endpoint, log_level=settings.OTEL_LOG_LEVEL)
    return provider


_tracer_slot: _ProviderSlot[TracerProvider] = _ProviderSlot(_create_tracer_provider)
_logger_slot: _ProviderSlot[LoggerProvider] = _ProviderSlot(_create_logger_provider)


def get_tracer_provider() -> TracerProvider | None:
    """Return this process's TracerProvider, or None when OTEL is disabled."""
    return _tracer_slot.get()


def get_logger_provider() -> LoggerProvider | None:
    """Return this process's LoggerProvider, or None when OTEL is disabled."""
    return _logger_slot.get()


def set_logger_provider() -> None:
    """Install the LoggerProvider as the global OTEL logger provider."""
    if provider := get_logger_provider():
        otel_set_logger_provider(provider)


def shutdown_tracer_provider() -> None:
    """Flush pending spans. Safe to call repeatedly."""
    if _tracer_slot.shutdown():
        logger.info("otel_tracer_provider_shutdown")


def shutdown_logger_provider() -> None:
    """Flush pending log records. Safe to call repeatedly."""
    if _logger_slot.shutdown():
        logger.info("otel_logger_provider_shutdown")


def reset_providers() -> None:
    """Forget the cached providers without shutting them down."""
    _tracer_slot.reset()
    _logger_slot.reset()


@contextmanager
def service_span(
    name: str,
    service: str,
    kind: SpanKind = SpanKind.INTERNAL,
    **attributes: AttributeValue,
) -> Generator["Span"]:
    """Wrap a service operation in a span.

    The span ends with StatusCode.OK when the block completes. An exception
    leaving the block is recorded by the SDK, which marks the span ERROR and
    re-raises.

    Example:
        with service_span("line.add_section", "line-service", line_id=str(line_id)) as span:
            ...
            span.set_attribute("line.section_count", len(sections))
    """
    # Resolved per call so the provider installed during lifespan is used
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        name,
        kind=kind,
        attributes={"peer.service": service, **attributes},
    ) as span:
        yield span
        span.set_status(Status(StatusCode.OK))
