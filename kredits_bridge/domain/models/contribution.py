"""Contribution draft model.

A draft is the canonical, in-memory form of a contribution before it is
written to the ledger. Drafts are produced by the event normalizers and
the review aggregator and consumed by the submission sequencer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Platform(str, Enum):
    """External platforms contributions originate from."""

    GITHUB = "github"
    GITEA = "gitea"
    MEDIAWIKI = "mediawiki"
    ZOOM = "zoom"


class ContributionKind(str, Enum):
    """Category recorded with a contribution on the ledger."""

    DEV = "dev"
    OPS = "ops"
    DOCS = "docs"
    DESIGN = "design"
    COMMUNITY = "community"


@dataclass(frozen=True)
class ContributionDraft:
    """A not-yet-submitted contribution for one recipient.

    Attributes:
        recipient_external_id: Username of the recipient on `platform`.
        platform: Platform the recipient identity belongs to.
        amount: Kredits to award, always greater than zero.
        kind: Contribution category.
        date: UTC date in ISO format (YYYY-MM-DD).
        time: UTC time in ISO format (HH:MM:SSZ), may be None.
        description: Human-readable summary.
        url: Link to the work, may be None.
        details: Free-form detail payload stored in the blob store.
        details_blob_ref: Blob store hash once the details are persisted.
    """

    recipient_external_id: str
    platform: Platform
    amount: int
    kind: ContributionKind
    date: str
    time: str | None
    description: str
    url: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    details_blob_ref: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"Contribution amount must be positive, got {self.amount}")
