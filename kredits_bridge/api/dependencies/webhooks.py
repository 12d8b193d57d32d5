"""Webhook dependencies.

The container is built once in the application lifespan and stored on
app.state; these dependencies only read it, so tests can install a
container wired to stubs.
"""

from fastapi import Depends, Request

from kredits_bridge.application.services.webhook_intake import WebhookIntake
from kredits_bridge.bootstrap.container import KreditsContainer


def get_container(request: Request) -> KreditsContainer:
    """Return the process-wide container."""
    return request.app.state.container


def get_webhook_intake(
    container: KreditsContainer = Depends(get_container),
) -> WebhookIntake:
    return container.intake


def get_webhook_token(container: KreditsContainer = Depends(get_container)) -> str:
    return container.config.integrations.webhook_token
