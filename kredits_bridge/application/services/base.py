"""Base service logging mixin.

Usage:
    class MyService(LoggingMixin):
        def __init__(self, dependency: SomePort) -> None:
            self._dependency = dependency
            self._init_logger()

        async def do_something(self) -> None:
            log = self._log_operation("do_something", item_id="123")
            log.info("operation_started")
"""

import structlog

from kredits_bridge.infrastructure.observability.correlation import get_correlation_id


class LoggingMixin:
    """Mixin providing structured, correlated logging for services.

    Attributes:
        _log: Logger bound with the service class name and component.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "kredits") -> None:
        """Bind the service logger. Call from __init__."""
        self._log = structlog.get_logger().bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Create an operation-scoped logger with the correlation id.

        Args:
            operation: Name of the operation being performed.
            **context: Additional context to bind.

        Returns:
            BoundLogger with operation and correlation context.
        """
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )
