"""API middleware."""

from kredits_bridge.api.middleware.logging_middleware import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
