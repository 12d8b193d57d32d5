"""Submission task model for the sequencer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kredits_bridge.domain.models.contribution import ContributionDraft
from kredits_bridge.domain.models.contributor import Contributor


class SubmissionStatus(str, Enum):
    """Lifecycle of a submission task."""

    PENDING = "pending"  # nonce assigned, waiting in the queue
    SUBMITTED = "submitted"  # transaction sent, no answer yet
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.CONFIRMED, SubmissionStatus.FAILED)


@dataclass
class SubmissionTask:
    """A draft accepted by the sequencer together with its nonce.

    Attributes:
        draft: The contribution being written.
        contributor: Resolved recipient.
        nonce: Ledger nonce, assigned once and never reused.
        status: Current lifecycle state.
        transaction_hash: Set when the ledger confirms the write.
        error: Failure reason when status is FAILED.
    """

    draft: ContributionDraft
    contributor: Contributor
    nonce: int
    status: SubmissionStatus = SubmissionStatus.PENDING
    transaction_hash: str | None = None
    error: str | None = None

    def mark_submitted(self) -> None:
        if self.status is not SubmissionStatus.PENDING:
            raise RuntimeError(
                f"Task with nonce {self.nonce} cannot be submitted from {self.status.value}"
            )
        self.status = SubmissionStatus.SUBMITTED

    def mark_confirmed(self, transaction_hash: str) -> None:
        self.status = SubmissionStatus.CONFIRMED
        self.transaction_hash = transaction_hash

    def mark_failed(self, error: str) -> None:
        self.status = SubmissionStatus.FAILED
        self.error = error
