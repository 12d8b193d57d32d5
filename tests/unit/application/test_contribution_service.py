"""Unit tests for ContributionService."""

from unittest.mock import AsyncMock

import pytest

from kredits_bridge.application.services.contribution_service import ContributionService
from kredits_bridge.application.services.recipient_resolver import RecipientResolver
from kredits_bridge.application.services.submission_sequencer import SubmissionSequencer
from kredits_bridge.domain.errors import SubmissionError
from kredits_bridge.domain.models.contribution import (
    ContributionDraft,
    ContributionKind,
    Platform,
)
from kredits_bridge.domain.models.contributor import Contributor
from kredits_bridge.infrastructure.stubs import (
    BlobStoreStub,
    ChatNotifierStub,
    ContributorDirectoryStub,
    LedgerStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority

ROOM = "kredits"


def make_draft(recipient: str, platform: Platform = Platform.GITHUB) -> ContributionDraft:
    return ContributionDraft(
        recipient_external_id=recipient,
        platform=platform,
        amount=1500,
        kind=ContributionKind.DOCS,
        date="2024-03-01",
        time=None,
        description="67P/kredits-web: Document the API",
        url="https://github.com/67P/kredits-web/pull/3",
    )


@pytest.fixture
async def sequencer(
    ledger: LedgerStub,
    blob_store: BlobStoreStub,
    notifier: ChatNotifierStub,
    fake_time_authority: FakeTimeAuthority,
) -> SubmissionSequencer:
    sequencer = SubmissionSequencer(ledger, blob_store, notifier, ROOM, fake_time_authority)
    await sequencer.start()
    return sequencer


@pytest.fixture
def service(
    directory: ContributorDirectoryStub,
    sequencer: SubmissionSequencer,
    notifier: ChatNotifierStub,
) -> ContributionService:
    return ContributionService(RecipientResolver(directory), sequencer, notifier, ROOM)


class TestAward:
    """Tests for award()."""

    async def test_resolved_draft_is_queued(
        self, service: ContributionService, sequencer: SubmissionSequencer, alice: Contributor
    ) -> None:
        task = await service.award(make_draft("alice-gh"))

        assert task is not None
        assert task.contributor == alice
        assert task.nonce == 42
        assert sequencer.pending == 1

    async def test_unknown_recipient_is_abandoned_and_reported(
        self,
        service: ContributionService,
        sequencer: SubmissionSequencer,
        notifier: ChatNotifierStub,
    ) -> None:
        assert await service.award(make_draft("stranger")) is None

        assert sequencer.pending == 0
        assert sequencer.next_nonce == 42
        (message,) = notifier.messages_for(ROOM)
        assert message.startswith("I wanted to propose giving kredits to github user stranger")
        assert message.endswith("Please add them as a contributor: https://kredits.kosmos.org")

    async def test_directory_outage_abandons_draft_silently(
        self,
        service: ContributionService,
        directory: ContributorDirectoryStub,
        notifier: ChatNotifierStub,
    ) -> None:
        directory.unavailable = True
        assert await service.award(make_draft("alice-gh")) is None
        assert notifier.messages == []

    async def test_award_all_skips_abandoned_drafts(self, service: ContributionService) -> None:
        tasks = await service.award_all(
            [make_draft("alice-gh"), make_draft("stranger"), make_draft("bob", Platform.GITEA)]
        )
        assert [t.nonce for t in tasks] == [42, 43]


class TestSubmit:
    """Tests for submit() with an already resolved contributor."""

    async def test_invalid_document_is_dropped_without_notification(
        self, service: ContributionService, notifier: ChatNotifierStub
    ) -> None:
        nameless = Contributor(id=8, name="No Profile")
        assert await service.submit(make_draft("x"), nameless) is None
        assert notifier.messages == []

    async def test_storage_failure_is_reported(
        self, directory: ContributorDirectoryStub, notifier: ChatNotifierStub, alice: Contributor
    ) -> None:
        sequencer = AsyncMock(spec=SubmissionSequencer)
        sequencer.accept.side_effect = SubmissionError("IPFS down")
        service = ContributionService(RecipientResolver(directory), sequencer, notifier, ROOM)

        assert await service.submit(make_draft("alice-gh"), alice) is None

        (message,) = notifier.messages_for(ROOM)
        assert "I tried to add a contribution for Alice" in message
        assert "IPFS down" in message
