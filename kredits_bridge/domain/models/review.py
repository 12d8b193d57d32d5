"""Review records produced by the review aggregator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kredits_bridge.domain.models.contribution import Platform


class ReviewState(str, Enum):
    """Review outcomes that earn kredits."""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class ReviewRecord:
    """One qualifying review of a merged, labelled pull request.

    Attributes:
        platform: Code hosting platform of the pull request.
        repository: Full repository name (owner/name).
        pull_request_number: Pull request number within the repository.
        pull_request_url: Web URL of the pull request.
        reviewer_username: Platform username of the reviewer.
        review_state: APPROVED or REJECTED.
        kredits_amount: Amount derived from the pull request's kredits label.
    """

    platform: Platform
    repository: str
    pull_request_number: int
    pull_request_url: str
    reviewer_username: str
    review_state: ReviewState
    kredits_amount: int
