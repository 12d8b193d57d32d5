"""FastAPI dependencies."""

from kredits_bridge.api.dependencies.webhooks import (
    get_container,
    get_webhook_intake,
    get_webhook_token,
)

__all__ = ["get_container", "get_webhook_intake", "get_webhook_token"]
