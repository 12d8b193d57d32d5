"""Health check endpoint."""

from fastapi import APIRouter, Depends

from kredits_bridge.api.dependencies.webhooks import get_container
from kredits_bridge.api.models import HealthResponse
from kredits_bridge.bootstrap.container import KreditsContainer

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    container: KreditsContainer = Depends(get_container),
) -> HealthResponse:
    """Return health status and queue depths."""
    return HealthResponse(
        status="healthy",
        pending_events=container.intake.pending,
        pending_submissions=container.sequencer.pending,
    )
