"""Wiki poller: periodic batches of wiki edits per editor.

Each poll fetches the recent changes since the previous successful poll,
groups them by editor and runs every editor's batch through the wiki edit
normalizer. The watermark only advances after a successful fetch; a
failing editor batch is logged and skipped.
"""

from __future__ import annotations

import asyncio

from kredits_bridge.application.ports.time_authority import TimeAuthorityProtocol
from kredits_bridge.application.ports.wiki import WikiChange, WikiClientProtocol
from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.application.services.contribution_service import ContributionService
from kredits_bridge.application.services.event_normalizer import (
    WIKI_EDIT_BATCH_EVENT,
    EventNormalizerRegistry,
    PlatformEvent,
)
from kredits_bridge.domain.errors import UpstreamFetchError
from kredits_bridge.domain.models.contribution import Platform
from kredits_bridge.domain.models.submission import SubmissionTask


def group_changes_by_user(changes: list[WikiChange]) -> dict[str, list[WikiChange]]:
    """Group changes by editor, keeping first-seen order."""
    grouped: dict[str, list[WikiChange]] = {}
    for change in changes:
        grouped.setdefault(change.user, []).append(change)
    return grouped


class WikiChangesPoller(LoggingMixin):
    """Polls a wiki and awards each editor's batch of edits."""

    def __init__(
        self,
        wiki_client: WikiClientProtocol,
        registry: EventNormalizerRegistry,
        contribution_service: ContributionService,
        time_authority: TimeAuthorityProtocol,
        last_processed_at: str | None = None,
    ) -> None:
        self._wiki_client = wiki_client
        self._registry = registry
        self._contribution_service = contribution_service
        self._time = time_authority
        self._last_processed_at = last_processed_at
        self._init_logger()

    @property
    def last_processed_at(self) -> str | None:
        return self._last_processed_at

    async def poll_once(self) -> list[SubmissionTask]:
        """Fetch, group and award one window of wiki edits."""
        log = self._log_operation("poll", since=self._last_processed_at)
        started_at = self._time.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")

        try:
            changes = await self._wiki_client.fetch_recent_changes(self._last_processed_at)
        except UpstreamFetchError as e:
            log.error("wiki_changes_fetch_failed", error=str(e), url=e.url)
            return []

        tasks: list[SubmissionTask] = []
        failed_users: list[str] = []
        for user, user_changes in group_changes_by_user(changes).items():
            try:
                tasks.extend(await self._award_editor(user, user_changes))
            except Exception:
                log.exception("wiki_editor_batch_failed", user=user, changes=len(user_changes))
                failed_users.append(user)

        # Advances even when an editor failed; already queued batches must not repeat.
        self._last_processed_at = started_at
        log.info(
            "wiki_poll_completed",
            changes=len(changes),
            queued=len(tasks),
            failed_users=failed_users,
        )
        return tasks

    async def _award_editor(
        self, user: str, user_changes: list[WikiChange]
    ) -> list[SubmissionTask]:
        event = PlatformEvent(
            platform=Platform.MEDIAWIKI,
            event_type=WIKI_EDIT_BATCH_EVENT,
            payload={"user": user, "changes": user_changes},
        )
        drafts = await self._registry.normalize(event)
        return await self._contribution_service.award_all(drafts)

    async def run(self, interval_seconds: float) -> None:
        """Poll every `interval_seconds` until cancelled."""
        log = self._log_operation("run", interval=interval_seconds)
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("wiki_poll_error")
            await self._time.sleep(interval_seconds)
