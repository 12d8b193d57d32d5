"""Contribution service: resolve a draft's recipient and hand it to the sequencer.

Every failure here is scoped to one draft. Unknown recipients and
rejected submissions are posted to the chat room so a human can act;
invalid detail documents are only logged.
"""

from __future__ import annotations

from collections.abc import Iterable

from kredits_bridge.application.ports.chat_notifier import ChatNotifierProtocol
from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.application.services.recipient_resolver import RecipientResolver
from kredits_bridge.application.services.submission_sequencer import SubmissionSequencer
from kredits_bridge.domain.errors import (
    ResolutionError,
    SubmissionError,
    UpstreamFetchError,
    ValidationError,
)
from kredits_bridge.domain.models.contribution import ContributionDraft
from kredits_bridge.domain.models.contributor import Contributor
from kredits_bridge.domain.models.submission import SubmissionTask

KREDITS_DASHBOARD_URL = "https://kredits.kosmos.org"


class ContributionService(LoggingMixin):
    """Turns drafts into queued submission tasks."""

    def __init__(
        self,
        resolver: RecipientResolver,
        sequencer: SubmissionSequencer,
        notifier: ChatNotifierProtocol,
        chat_room: str,
    ) -> None:
        self._resolver = resolver
        self._sequencer = sequencer
        self._notifier = notifier
        self._chat_room = chat_room
        self._init_logger()

    async def award(self, draft: ContributionDraft) -> SubmissionTask | None:
        """Resolve the draft's recipient and queue the draft.

        Returns:
            The queued task, or None if the draft was abandoned.
        """
        log = self._log_operation(
            "award",
            platform=draft.platform.value,
            recipient=draft.recipient_external_id,
            url=draft.url,
        )
        try:
            contributor = await self._resolver.resolve(
                draft.platform, draft.recipient_external_id
            )
        except ResolutionError as e:
            log.warning("draft_abandoned", reason="unknown_contributor", error=str(e))
            await self._notifier.post(
                self._chat_room,
                f"I wanted to propose giving kredits to {e.platform} user {e.username}, "
                f"but I cannot find their info. Please add them as a contributor: "
                f"{KREDITS_DASHBOARD_URL}",
            )
            return None
        except UpstreamFetchError as e:
            log.error(
                "draft_abandoned", reason="directory_unavailable", error=str(e), url=e.url
            )
            return None

        return await self.submit(draft, contributor)

    async def submit(
        self, draft: ContributionDraft, contributor: Contributor
    ) -> SubmissionTask | None:
        """Queue a draft whose recipient is already resolved.

        Returns:
            The queued task, or None if the draft was dropped.
        """
        log = self._log_operation(
            "submit", contributor_id=contributor.id, amount=draft.amount
        )
        try:
            task = await self._sequencer.accept(draft, contributor)
        except ValidationError as e:
            log.error("draft_dropped", reason="invalid_document", errors=e.messages)
            return None
        except SubmissionError as e:
            log.error("draft_dropped", reason="submission_error", error=e.reason)
            await self._notifier.post(
                self._chat_room,
                f"I tried to add a contribution for {contributor.name} for "
                f"{draft.url or draft.description}, but I encountered an error: {e.reason}",
            )
            return None

        log.info("draft_queued", nonce=task.nonce)
        return task

    async def award_all(self, drafts: Iterable[ContributionDraft]) -> list[SubmissionTask]:
        """Award each draft in order; abandoned drafts are skipped."""
        tasks = []
        for draft in drafts:
            task = await self.award(draft)
            if task is not None:
                tasks.append(task)
        return tasks
