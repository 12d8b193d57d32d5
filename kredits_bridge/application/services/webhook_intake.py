"""Webhook intake: acknowledge-and-enqueue, then process in the background.

Phase one (accept) is synchronous and cannot fail the HTTP request: it
unwraps the body, wraps it in a PlatformEvent and puts it on a queue.
Phase two (process / run) normalizes the event and awards each draft;
any error there is scoped to that one delivery.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.application.services.contribution_service import ContributionService
from kredits_bridge.application.services.event_normalizer import (
    EventNormalizerRegistry,
    PlatformEvent,
)
from kredits_bridge.domain.errors import UpstreamFetchError
from kredits_bridge.domain.models.contribution import Platform
from kredits_bridge.domain.models.submission import SubmissionTask
from kredits_bridge.infrastructure.observability.correlation import set_correlation_id


def unwrap_payload(body: dict[str, Any]) -> dict[str, Any]:
    """Return the real event payload of a webhook body.

    Some deliveries wrap the event under a `payload` key, either as a
    JSON string (form style deliveries) or as an object.

    Raises:
        ValueError: The wrapped payload is not a JSON object.
    """
    if "payload" not in body:
        return body
    payload = body["payload"]
    if isinstance(payload, str):
        payload = json.loads(payload)
    if not isinstance(payload, dict):
        raise ValueError("Wrapped webhook payload is not an object")
    return payload


class WebhookIntake(LoggingMixin):
    """Queue between the HTTP ingress and contribution processing."""

    def __init__(
        self,
        registry: EventNormalizerRegistry,
        contribution_service: ContributionService,
    ) -> None:
        self._registry = registry
        self._contribution_service = contribution_service
        self._queue: asyncio.Queue[PlatformEvent] = asyncio.Queue()
        self._init_logger()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def accept(
        self,
        platform: Platform,
        event_type: str,
        body: dict[str, Any],
        correlation_id: str = "",
    ) -> PlatformEvent | None:
        """Acknowledge a delivery and enqueue it for processing.

        Returns:
            The enqueued event, or None if it was not enqueued (unhandled
            event type or undecodable payload).
        """
        log = self._log_operation(
            "accept", platform=platform.value, event_type=event_type
        )
        try:
            payload = unwrap_payload(body)
        except ValueError as e:
            log.warning("webhook_payload_invalid", error=str(e))
            return None

        log.info("webhook_received", action=payload.get("action"))

        if not self._registry.handles(platform, event_type):
            log.debug("webhook_event_ignored")
            return None

        event = PlatformEvent(
            platform=platform,
            event_type=event_type,
            payload=payload,
            correlation_id=correlation_id,
        )
        self._queue.put_nowait(event)
        return event

    async def process(self, event: PlatformEvent) -> list[SubmissionTask]:
        """Normalize one event and award its drafts."""
        if event.correlation_id:
            set_correlation_id(event.correlation_id)
        log = self._log_operation(
            "process", platform=event.platform.value, event_type=event.event_type
        )
        try:
            drafts = await self._registry.normalize(event)
        except UpstreamFetchError as e:
            log.error("webhook_upstream_fetch_failed", error=str(e), url=e.url)
            return []
        except (KeyError, TypeError, ValueError) as e:
            log.error("webhook_payload_malformed", error=repr(e))
            return []

        return await self._contribution_service.award_all(drafts)

    async def process_pending(self) -> list[SubmissionTask]:
        """Process every queued event; used by tests and one-shot runs."""
        tasks: list[SubmissionTask] = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                tasks.extend(await self.process(event))
            finally:
                self._queue.task_done()
        return tasks

    async def run(self) -> None:
        """Process queued events until cancelled."""
        log = self._log_operation("run")
        log.info("webhook_worker_started")
        while True:
            event = await self._queue.get()
            try:
                await self.process(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception(
                    "webhook_worker_error",
                    platform=event.platform.value,
                    event_type=event.event_type,
                )
            finally:
                self._queue.task_done()
