"""API response models."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response.

    Attributes:
        status: Health status string (e.g., "healthy").
        pending_events: Webhook events awaiting processing.
        pending_submissions: Accepted contributions awaiting submission.
    """

    status: str
    pending_events: int = 0
    pending_submissions: int = 0


class WebhookAcknowledgement(BaseModel):
    """Response to every authenticated webhook delivery.

    Attributes:
        status: Always "ok"; processing happens after the response.
        queued: Whether the event was queued for processing.
        correlation_id: Id to find the delivery's processing in the logs.
    """

    status: str = "ok"
    queued: bool
    correlation_id: str
