"""Submission sequencer: ordered, spaced ledger writes for one signer.

The ledger rejects rapid or conflicting transactions from one signer, so
every write goes through exactly one SubmissionSequencer per signing
identity. The sequencer:

1. Seeds its nonce counter from the signer's transaction count (start()).
2. Assigns the next nonce when a draft is accepted, not when it is sent.
   Assignment and enqueueing happen without yielding to the event loop,
   so queue order always equals nonce order.
3. Sends queued tasks strictly one at a time, waiting at least the
   cooldown interval between two transactions.
4. Never retries: a failed transaction keeps its nonce as a permanent
   gap and the failure is logged and posted to the chat room.

Usage:
    sequencer = SubmissionSequencer(ledger, blob_store, notifier, room, clock)
    await sequencer.start()
    task = await sequencer.accept(draft, contributor)
    await sequencer.drain()        # batch runs
    await sequencer.run()          # long-running service
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, replace
from typing import Any

import structlog

from kredits_bridge.application.ports.blob_store import BlobStoreProtocol
from kredits_bridge.application.ports.chat_notifier import ChatNotifierProtocol
from kredits_bridge.application.ports.ledger import LedgerProtocol
from kredits_bridge.application.ports.time_authority import TimeAuthorityProtocol
from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.application.services.contribution_document import (
    build_contribution_document,
    serialize_contribution_document,
    validate_contribution_document,
)
from kredits_bridge.domain.errors import SubmissionError, UpstreamFetchError
from kredits_bridge.domain.models.contribution import ContributionDraft
from kredits_bridge.domain.models.contributor import Contributor
from kredits_bridge.domain.models.submission import SubmissionTask

DEFAULT_COOLDOWN_SECONDS = 60.0


class SubmissionSequencer(LoggingMixin):
    """Owns the nonce counter of one signer and serializes its writes."""

    def __init__(
        self,
        ledger: LedgerProtocol,
        blob_store: BlobStoreProtocol,
        notifier: ChatNotifierProtocol,
        chat_room: str,
        time_authority: TimeAuthorityProtocol,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
    ) -> None:
        """Initialize the sequencer.

        Args:
            ledger: Ledger capability for the signing identity.
            blob_store: Store for contribution detail documents.
            notifier: Chat sink for failure notifications.
            chat_room: Room failures are posted to.
            time_authority: Clock and sleep provider.
            cooldown_seconds: Minimum delay between two transactions.
        """
        self._ledger = ledger
        self._blob_store = blob_store
        self._notifier = notifier
        self._chat_room = chat_room
        self._time = time_authority
        self._cooldown_seconds = cooldown_seconds

        self._next_nonce: int | None = None
        self._last_submission_at: float | None = None
        self._queue: asyncio.Queue[SubmissionTask] = asyncio.Queue()
        self._submit_lock = asyncio.Lock()
        self._init_logger()

    @property
    def signer_address(self) -> str:
        return self._ledger.signer_address

    @property
    def started(self) -> bool:
        return self._next_nonce is not None

    @property
    def next_nonce(self) -> int | None:
        """Nonce the next accepted draft will receive."""
        return self._next_nonce

    @property
    def pending(self) -> int:
        """Number of accepted tasks not yet sent."""
        return self._queue.qsize()

    async def start(self) -> int:
        """Seed the nonce counter from the ledger.

        Returns:
            The first nonce that will be assigned.

        Raises:
            RuntimeError: If the sequencer was already started.
        """
        if self.started:
            raise RuntimeError("SubmissionSequencer already started")
        count = await self._ledger.get_transaction_count(self.signer_address)
        self._next_nonce = count
        self._log_operation("start", signer=self.signer_address).info(
            "sequencer_started", next_nonce=count
        )
        return count

    async def accept(
        self, draft: ContributionDraft, contributor: Contributor
    ) -> SubmissionTask:
        """Persist the draft's details, assign a nonce and enqueue it.

        Validation and blob storage happen before the nonce is assigned,
        so a rejected draft never consumes a nonce.

        Returns:
            The pending task, carrying its nonce.

        Raises:
            RuntimeError: If start() has not been awaited.
            ValidationError: The detail document is invalid.
            SubmissionError: The detail document could not be stored.
        """
        if not self.started:
            raise RuntimeError("SubmissionSequencer.start() must be awaited first")

        document = build_contribution_document(draft, contributor)
        validate_contribution_document(document)

        try:
            blob_ref = await self._blob_store.put(serialize_contribution_document(document))
        except UpstreamFetchError as e:
            raise SubmissionError(f"Could not store contribution details: {e}") from e

        task = SubmissionTask(
            draft=replace(draft, details_blob_ref=blob_ref),
            contributor=contributor,
            nonce=self._assign_nonce(),
        )
        self._queue.put_nowait(task)

        self._log_operation(
            "accept", nonce=task.nonce, recipient=draft.recipient_external_id
        ).info("submission_accepted", amount=draft.amount, pending=self.pending)
        return task

    def _assign_nonce(self) -> int:
        # Must stay synchronous: no await between read and increment.
        assert self._next_nonce is not None
        nonce = self._next_nonce
        self._next_nonce += 1
        return nonce

    async def drain(self) -> list[SubmissionTask]:
        """Send every queued task and return them in nonce order."""
        processed: list[SubmissionTask] = []
        while not self._queue.empty():
            task = self._queue.get_nowait()
            try:
                await self._submit(task)
            finally:
                self._queue.task_done()
            processed.append(task)
        return processed

    async def run(self) -> None:
        """Send tasks as they arrive until cancelled."""
        log = self._log_operation("run", signer=self.signer_address)
        log.info("sequencer_worker_started")
        while True:
            task = await self._queue.get()
            try:
                await self._submit(task)
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("sequencer_worker_error", nonce=task.nonce)
            finally:
                self._queue.task_done()

    async def _wait_for_cooldown(self) -> None:
        if self._last_submission_at is None:
            return
        elapsed = self._time.monotonic() - self._last_submission_at
        remaining = self._cooldown_seconds - elapsed
        if remaining > 0:
            await self._time.sleep(remaining)

    def _transaction_attributes(self, task: SubmissionTask) -> dict[str, Any]:
        draft = task.draft
        return {
            "contributorId": task.contributor.id,
            "contributorIpfsHash": task.contributor.blob_ref,
            "amount": draft.amount,
            "kind": draft.kind.value,
            "date": draft.date,
            "time": draft.time,
            "description": draft.description,
            "url": draft.url,
            "ipfsHash": draft.details_blob_ref,
        }

    async def _fail(
        self, task: SubmissionTask, reason: str, log: structlog.BoundLogger
    ) -> None:
        # The nonce stays consumed.
        task.mark_failed(reason)
        log.error("contribution_submission_failed", error=reason, draft=asdict(task.draft))
        await self._notifier.post(
            self._chat_room,
            f"I tried to add a contribution for {task.draft.recipient_external_id} "
            f"for {task.draft.url or task.draft.description}, but I encountered "
            f"an error when submitting the tx: {reason}",
        )

    async def _submit(self, task: SubmissionTask) -> None:
        async with self._submit_lock:
            await self._wait_for_cooldown()
            log = self._log_operation(
                "submit",
                nonce=task.nonce,
                recipient=task.draft.recipient_external_id,
                contributor_id=task.contributor.id,
            )
            task.mark_submitted()
            try:
                result = await self._ledger.submit(
                    self._transaction_attributes(task), nonce=task.nonce
                )
                transaction_hash = result["hash"]
            except SubmissionError as e:
                await self._fail(task, e.reason, log)
                return
            except Exception as e:
                log.exception("contribution_submission_error", nonce=task.nonce)
                await self._fail(task, f"{type(e).__name__}: {e}", log)
                return
            finally:
                self._last_submission_at = self._time.monotonic()

            task.mark_confirmed(transaction_hash)
            log.info(
                "contribution_submitted",
                transaction_hash=task.transaction_hash,
                amount=task.draft.amount,
            )
