"""API routes."""

from kredits_bridge.api.routes.health import router as health_router
from kredits_bridge.api.routes.webhooks import router as webhooks_router

__all__ = ["health_router", "webhooks_router"]
