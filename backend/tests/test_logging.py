"""Tests for logging configuration module."""

import logging
import sys
from io import StringIO
from unittest.mock import MagicMock, patch

import structlog
from opentelemetry import trace

from subway.core.logging import AttrFilteredLoggingHandler, _add_otel_context, configure_logging


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_sets_root_log_level(self) -> None:
        configure_logging(log_level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

        configure_logging(log_level="warning")
        assert logging.getLogger().level == logging.WARNING

    def test_default_level_is_info(self) -> None:
        configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_noisy_loggers_pinned_to_warning(self) -> None:
        configure_logging(log_level="DEBUG")

        for name in ("sqlalchemy.engine", "sqlalchemy.pool", "alembic.runtime.migration", "uvicorn.access"):
            assert logging.getLogger(name).level == logging.WARNING

    def test_replaces_existing_handlers_with_stdout_handler(self) -> None:
        root_logger = logging.getLogger()
        dummy_handler = logging.StreamHandler()
        root_logger.addHandler(dummy_handler)

        with patch("subway.core.config.settings.OTEL_ENABLED", False):
            configure_logging()

        assert dummy_handler not in root_logger.handlers
        (handler,) = root_logger.handlers
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream == sys.stdout

    def test_structlog_and_stdlib_share_output(self) -> None:
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            configure_logging(log_level="DEBUG")
            structlog.get_logger("subway.test").info("section_added", distance=4)
            logging.getLogger("stdlib_test").info("stdlib message")

            output = mock_stdout.getvalue()

        assert "section_added" in output
        assert "stdlib message" in output


class TestAddOtelContext:
    """Tests for _add_otel_context processor."""

    def test_adds_trace_and_span_ids_with_active_span(self) -> None:
        span_context = MagicMock()
        span_context.trace_id = 0x1234567890ABCDEF1234567890ABCDEF
        span_context.span_id = 0x1234567890ABCDEF
        span = MagicMock()
        span.is_recording.return_value = True
        span.get_span_context.return_value = span_context

        with patch.object(trace, "get_current_span", return_value=span):
            result = _add_otel_context(logging.getLogger(), "info", {"event": "station_removed_from_line"})

        assert result["trace_id"] == "1234567890abcdef1234567890abcdef"
        assert result["span_id"] == "1234567890abcdef"
        assert result["event"] == "station_removed_from_line"

    def test_no_trace_ids_without_recording_span(self) -> None:
        span = MagicMock()
        span.is_recording.return_value = False

        with patch.object(trace, "get_current_span", return_value=span):
            result = _add_otel_context(logging.getLogger(), "info", {"event": "test_event"})

        assert "trace_id" not in result
        assert "span_id" not in result


class TestAttrFilteredLoggingHandler:
    """Tests for AttrFilteredLoggingHandler attribute filtering."""

    def test_drops_structlog_logger_attribute(self) -> None:
        record = logging.LogRecord("subway", logging.INFO, __file__, 1, "message", None, None)
        record._logger = object()  # type: ignore[attr-defined]
        record.line_id = "abc"  # type: ignore[attr-defined]

        attributes = AttrFilteredLoggingHandler._get_attributes(record)

        assert attributes is not None
        assert "_logger" not in attributes
        assert attributes["line_id"] == "abc"
