"""Logging middleware for correlation ID propagation.

The correlation id of a request is taken from, in order:
- the X-Correlation-ID header
- the platform's delivery id (X-GitHub-Delivery, X-Gitea-Delivery)
- a freshly generated id

It is set in the context for downstream loggers, returned in the
X-Correlation-ID response header and carried by queued webhook events
into background processing.

Usage:
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)
"""

import time
from typing import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from kredits_bridge.infrastructure.observability.correlation import (
    generate_correlation_id,
    set_correlation_id,
)

CORRELATION_HEADER = "X-Correlation-ID"
DELIVERY_HEADERS = ("X-GitHub-Delivery", "X-Gitea-Delivery")


def correlation_id_for(request: Request) -> str:
    for header in (CORRELATION_HEADER, *DELIVERY_HEADERS):
        value = request.headers.get(header)
        if value:
            return value
    return generate_correlation_id()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Correlation id propagation and request logging."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = correlation_id_for(request)
        set_correlation_id(correlation_id)

        # The webhook token is part of the path; log the route prefix only.
        path = request.url.path
        if path.startswith("/incoming/kredits/"):
            path = "/".join(path.split("/")[:4])

        log = structlog.get_logger().bind(
            correlation_id=correlation_id,
            method=request.method,
            path=path,
            client_host=request.client.host if request.client else None,
        )
        log.info("request_started")
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            log.exception(
                "request_failed",
                duration_ms=round(duration_ms, 2),
                error_type=type(exc).__name__,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
