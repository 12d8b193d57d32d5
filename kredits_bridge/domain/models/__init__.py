"""Domain models for contribution attribution."""

from kredits_bridge.domain.models.contribution import (
    ContributionDraft,
    ContributionKind,
    Platform,
)
from kredits_bridge.domain.models.contributor import Contributor, ExternalAccount
from kredits_bridge.domain.models.review import ReviewRecord, ReviewState
from kredits_bridge.domain.models.submission import SubmissionStatus, SubmissionTask

__all__ = [
    "ContributionDraft",
    "ContributionKind",
    "Contributor",
    "ExternalAccount",
    "Platform",
    "ReviewRecord",
    "ReviewState",
    "SubmissionStatus",
    "SubmissionTask",
]
