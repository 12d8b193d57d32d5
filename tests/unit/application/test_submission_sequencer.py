"""Unit tests for SubmissionSequencer."""

import asyncio
import json

import httpx
import pytest

from kredits_bridge.application.services.submission_sequencer import SubmissionSequencer
from kredits_bridge.domain.errors import SubmissionError, ValidationError
from kredits_bridge.domain.models.contribution import (
    ContributionDraft,
    ContributionKind,
    Platform,
)
from kredits_bridge.domain.models.contributor import Contributor
from kredits_bridge.domain.models.submission import SubmissionStatus
from kredits_bridge.infrastructure.adapters.ledger_gateway import HttpLedgerGateway
from kredits_bridge.infrastructure.stubs import BlobStoreStub, ChatNotifierStub, LedgerStub
from tests.helpers.fake_time_authority import FakeTimeAuthority

ROOM = "kredits"


def make_draft(recipient: str = "alice-gh", date: str = "2024-03-01") -> ContributionDraft:
    return ContributionDraft(
        recipient_external_id=recipient,
        platform=Platform.GITHUB,
        amount=500,
        kind=ContributionKind.DEV,
        date=date,
        time="10:00:00Z",
        description="67P/kredits-web: Fix the dashboard",
        url="https://github.com/67P/kredits-web/issues/12",
    )


@pytest.fixture
def sequencer(
    ledger: LedgerStub,
    blob_store: BlobStoreStub,
    notifier: ChatNotifierStub,
    fake_time_authority: FakeTimeAuthority,
) -> SubmissionSequencer:
    return SubmissionSequencer(
        ledger, blob_store, notifier, ROOM, fake_time_authority, cooldown_seconds=60
    )


class TestStart:
    """Tests for nonce seeding."""

    async def test_seeds_from_transaction_count(self, sequencer: SubmissionSequencer) -> None:
        assert await sequencer.start() == 42
        assert sequencer.next_nonce == 42

    async def test_cannot_start_twice(self, sequencer: SubmissionSequencer) -> None:
        await sequencer.start()
        with pytest.raises(RuntimeError, match="already started"):
            await sequencer.start()

    async def test_accept_before_start_rejected(
        self, sequencer: SubmissionSequencer, alice: Contributor
    ) -> None:
        with pytest.raises(RuntimeError):
            await sequencer.accept(make_draft(), alice)


class TestAccept:
    """Tests for nonce assignment."""

    async def test_nonces_strictly_increase(
        self, sequencer: SubmissionSequencer, alice: Contributor
    ) -> None:
        await sequencer.start()
        tasks = [await sequencer.accept(make_draft(), alice) for _ in range(3)]

        assert [t.nonce for t in tasks] == [42, 43, 44]
        assert sequencer.pending == 3

    async def test_concurrent_accepts_get_distinct_nonces(
        self, sequencer: SubmissionSequencer, alice: Contributor, bob: Contributor
    ) -> None:
        await sequencer.start()
        tasks = await asyncio.gather(
            *(sequencer.accept(make_draft(), c) for c in [alice, bob, alice, bob])
        )

        assert sorted(t.nonce for t in tasks) == [42, 43, 44, 45]

    async def test_details_are_stored_before_queueing(
        self, sequencer: SubmissionSequencer, blob_store: BlobStoreStub, alice: Contributor
    ) -> None:
        await sequencer.start()
        task = await sequencer.accept(make_draft(), alice)

        document = json.loads(blob_store.blobs[task.draft.details_blob_ref])
        assert document["@type"] == "Contribution"
        assert document["contributor"] == {"ipfs": "QmAlice"}
        assert document["kind"] == "dev"

    async def test_invalid_document_consumes_no_nonce(
        self, sequencer: SubmissionSequencer, alice: Contributor
    ) -> None:
        await sequencer.start()
        with pytest.raises(ValidationError):
            await sequencer.accept(make_draft(date="01.03.2024"), alice)

        task = await sequencer.accept(make_draft(), alice)
        assert task.nonce == 42

    async def test_missing_contributor_profile_is_invalid(
        self, sequencer: SubmissionSequencer
    ) -> None:
        await sequencer.start()
        with pytest.raises(ValidationError):
            await sequencer.accept(make_draft(), Contributor(id=3, name="No Profile"))

    async def test_blob_store_failure_consumes_no_nonce(
        self, sequencer: SubmissionSequencer, blob_store: BlobStoreStub, alice: Contributor
    ) -> None:
        await sequencer.start()
        blob_store.fail = True
        with pytest.raises(SubmissionError):
            await sequencer.accept(make_draft(), alice)

        blob_store.fail = False
        assert (await sequencer.accept(make_draft(), alice)).nonce == 42


class TestDrain:
    """Tests for ordered, spaced submission."""

    async def test_submits_in_nonce_order(
        self, sequencer: SubmissionSequencer, ledger: LedgerStub, alice: Contributor
    ) -> None:
        await sequencer.start()
        for _ in range(3):
            await sequencer.accept(make_draft(), alice)

        tasks = await sequencer.drain()

        assert ledger.submitted_nonces == [42, 43, 44]
        assert all(t.status is SubmissionStatus.CONFIRMED for t in tasks)
        assert ledger.transactions[0].attributes["contributorId"] == alice.id
        assert ledger.transactions[0].attributes["ipfsHash"] == tasks[0].draft.details_blob_ref

    async def test_cooldown_between_transactions(
        self,
        sequencer: SubmissionSequencer,
        fake_time_authority: FakeTimeAuthority,
        alice: Contributor,
    ) -> None:
        await sequencer.start()
        for _ in range(3):
            await sequencer.accept(make_draft(), alice)

        await sequencer.drain()

        assert fake_time_authority.sleeps == [60, 60]

    async def test_cooldown_only_waits_the_remainder(
        self,
        sequencer: SubmissionSequencer,
        fake_time_authority: FakeTimeAuthority,
        alice: Contributor,
    ) -> None:
        await sequencer.start()
        await sequencer.accept(make_draft(), alice)
        await sequencer.drain()

        fake_time_authority.advance(seconds=45)
        await sequencer.accept(make_draft(), alice)
        await sequencer.drain()

        assert fake_time_authority.sleeps == [15]

    async def test_failed_nonce_stays_a_gap(
        self,
        ledger: LedgerStub,
        blob_store: BlobStoreStub,
        notifier: ChatNotifierStub,
        fake_time_authority: FakeTimeAuthority,
        alice: Contributor,
    ) -> None:
        ledger.fail_nonces = {43}
        sequencer = SubmissionSequencer(
            ledger, blob_store, notifier, ROOM, fake_time_authority
        )
        await sequencer.start()
        for _ in range(3):
            await sequencer.accept(make_draft(), alice)

        tasks = await sequencer.drain()

        assert [t.status for t in tasks] == [
            SubmissionStatus.CONFIRMED,
            SubmissionStatus.FAILED,
            SubmissionStatus.CONFIRMED,
        ]
        assert [tx.nonce for tx in ledger.transactions] == [42, 44]
        assert ledger.submitted_nonces == [42, 43, 44]
        assert sequencer.next_nonce == 45

        messages = notifier.messages_for(ROOM)
        assert len(messages) == 1
        assert "error when submitting the tx" in messages[0]
        assert "nonce 43 rejected" in messages[0]

    async def test_run_processes_until_cancelled(
        self, sequencer: SubmissionSequencer, ledger: LedgerStub, alice: Contributor
    ) -> None:
        await sequencer.start()
        worker = asyncio.create_task(sequencer.run())
        await sequencer.accept(make_draft(), alice)
        await sequencer.accept(make_draft(), alice)

        for _ in range(20):
            if len(ledger.transactions) == 2:
                break
            await asyncio.sleep(0)
        worker.cancel()
        with pytest.raises(asyncio.CancelledError):
            await worker

        assert [tx.nonce for tx in ledger.transactions] == [42, 43]

    async def test_malformed_ledger_response_fails_only_that_task(
        self,
        blob_store: BlobStoreStub,
        notifier: ChatNotifierStub,
        fake_time_authority: FakeTimeAuthority,
        alice: Contributor,
    ) -> None:
        responses = iter([["unexpected"], {"hash": "0xtx"}])

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/transaction-count"):
                return httpx.Response(200, json={"count": 7})
            return httpx.Response(201, json=next(responses))

        gateway = HttpLedgerGateway(
            "http://ledger.local", "0xsigner", transport=httpx.MockTransport(handler)
        )
        sequencer = SubmissionSequencer(
            gateway, blob_store, notifier, ROOM, fake_time_authority
        )
        try:
            await sequencer.start()
            await sequencer.accept(make_draft(), alice)
            await sequencer.accept(make_draft(), alice)
            tasks = await sequencer.drain()
        finally:
            await gateway.close()

        assert [(t.nonce, t.status) for t in tasks] == [
            (7, SubmissionStatus.FAILED),
            (8, SubmissionStatus.CONFIRMED),
        ]
        assert sequencer.pending == 0
        assert len(notifier.messages_for(ROOM)) == 1

    async def test_unexpected_ledger_error_is_a_failed_submission(
        self,
        ledger: LedgerStub,
        blob_store: BlobStoreStub,
        notifier: ChatNotifierStub,
        fake_time_authority: FakeTimeAuthority,
        alice: Contributor,
    ) -> None:
        sequencer = SubmissionSequencer(
            ledger, blob_store, notifier, ROOM, fake_time_authority
        )
        await sequencer.start()
        await sequencer.accept(make_draft(), alice)
        await sequencer.accept(make_draft(), alice)

        real_submit = ledger.submit

        async def flaky_submit(attributes: dict, nonce: int) -> dict:
            if nonce == 42:
                raise RuntimeError("connection reset")
            return await real_submit(attributes, nonce=nonce)

        ledger.submit = flaky_submit
        tasks = await sequencer.drain()

        assert [t.status for t in tasks] == [
            SubmissionStatus.FAILED,
            SubmissionStatus.CONFIRMED,
        ]
        assert tasks[0].error == "RuntimeError: connection reset"
        assert [tx.nonce for tx in ledger.transactions] == [43]
        assert sequencer.next_nonce == 44
        assert "connection reset" in notifier.messages_for(ROOM)[0]
