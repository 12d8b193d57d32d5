"""Unit tests for correlation ids and service logging."""

import structlog
from structlog.testing import capture_logs

from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.infrastructure.observability.correlation import (
    correlation_id_processor,
    set_correlation_id,
)


class _Service(LoggingMixin):
    def __init__(self) -> None:
        self._init_logger()

    def work(self) -> None:
        self._log_operation("work", item="x").info("work_done")


class TestCorrelationIdProcessor:
    """Tests for correlation_id_processor."""

    def test_adds_current_id(self) -> None:
        set_correlation_id("abc")
        assert correlation_id_processor(None, "info", {})["correlation_id"] == "abc"

    def test_keeps_explicit_id(self) -> None:
        set_correlation_id("abc")
        event = correlation_id_processor(None, "info", {"correlation_id": "mine"})
        assert event["correlation_id"] == "mine"

    def test_absent_when_unset(self) -> None:
        set_correlation_id("")
        assert "correlation_id" not in correlation_id_processor(None, "info", {})


class TestLoggingMixin:
    """Tests for LoggingMixin."""

    def test_operation_logger_binds_context(self) -> None:
        structlog.reset_defaults()
        set_correlation_id("req-1")
        with capture_logs() as logs:
            _Service().work()

        assert logs == [
            {
                "event": "work_done",
                "log_level": "info",
                "service": "_Service",
                "component": "kredits",
                "operation": "work",
                "correlation_id": "req-1",
                "item": "x",
            }
        ]
