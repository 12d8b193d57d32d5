"""Structured logging configuration with structlog.

Usage:
    from kredits_bridge.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")  # JSON output
    configure_structlog(environment="development")  # Console output

    log = structlog.get_logger()
    log.info("contribution_submitted", nonce=12)
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from kredits_bridge.infrastructure.observability.correlation import (
    correlation_id_processor,
)

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog once at process startup.

    Args:
        environment: 'production' for JSON lines, anything else for
            colored console output.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processors: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=shared_processors + final_processors,
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger_for_service(
    service_name: str, component: str = "kredits"
) -> structlog.BoundLogger:
    """Return a logger with `service` and `component` already bound."""
    return structlog.get_logger().bind(service=service_name, component=component)
