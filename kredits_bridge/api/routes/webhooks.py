"""Webhook ingress: POST /incoming/kredits/{platform}/{token}.

Every delivery with a valid token is acknowledged with 200 immediately;
normalization, resolution and submission happen in the background. An
unknown token or platform answers 404 so the endpoint does not reveal
which part was wrong.

The event type is the one the platform declares: the X-GitHub-Event or
X-Gitea-Event header, or the body's `event` field for Zoom.
"""

import hmac
import json
from typing import Any
from urllib.parse import parse_qsl

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from kredits_bridge.api.dependencies.webhooks import get_webhook_intake, get_webhook_token
from kredits_bridge.api.models import WebhookAcknowledgement
from kredits_bridge.application.services.webhook_intake import WebhookIntake
from kredits_bridge.domain.models.contribution import Platform
from kredits_bridge.infrastructure.observability.correlation import get_correlation_id

router = APIRouter(prefix="/incoming/kredits", tags=["webhooks"])

log = structlog.get_logger()

WEBHOOK_PLATFORMS = {
    "github": Platform.GITHUB,
    "gitea": Platform.GITEA,
    "zoom": Platform.ZOOM,
}

EVENT_HEADERS = {
    Platform.GITHUB: "X-GitHub-Event",
    Platform.GITEA: "X-Gitea-Event",
}


async def read_body(request: Request) -> dict[str, Any]:
    """Decode a JSON or form-encoded webhook body; {} if undecodable."""
    raw = await request.body()
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/x-www-form-urlencoded"):
            return dict(parse_qsl(raw.decode("utf-8")))
        body = json.loads(raw or b"{}")
    except (UnicodeDecodeError, ValueError) as e:
        log.warning("webhook_body_undecodable", error=str(e))
        return {}
    return body if isinstance(body, dict) else {}


def event_type_for(platform: Platform, request: Request, body: dict[str, Any]) -> str:
    header = EVENT_HEADERS.get(platform)
    if header is not None:
        return request.headers.get(header, "")
    return str(body.get("event", ""))


@router.post("/{platform}/{token}", response_model=WebhookAcknowledgement)
async def receive_webhook(
    platform: str,
    token: str,
    request: Request,
    intake: WebhookIntake = Depends(get_webhook_intake),
    expected_token: str = Depends(get_webhook_token),
) -> WebhookAcknowledgement:
    """Acknowledge a platform delivery and queue it for processing."""
    if not expected_token or not hmac.compare_digest(
        token.encode(), expected_token.encode()
    ):
        raise HTTPException(status_code=404, detail="Not Found")
    if platform not in WEBHOOK_PLATFORMS:
        raise HTTPException(status_code=404, detail="Not Found")

    resolved = WEBHOOK_PLATFORMS[platform]
    body = await read_body(request)
    correlation_id = get_correlation_id()
    event = intake.accept(
        resolved,
        event_type_for(resolved, request, body),
        body,
        correlation_id=correlation_id,
    )
    return WebhookAcknowledgement(queued=event is not None, correlation_id=correlation_id)
