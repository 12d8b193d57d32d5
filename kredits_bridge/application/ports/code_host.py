"""Code hosting platform port used by the review aggregator.

Both GitHub and Gitea adapters translate their API payloads into the
summaries below so the aggregator never inspects platform-specific
shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from kredits_bridge.domain.models.contribution import Platform


@dataclass(frozen=True)
class PullRequestSummary:
    """The fields of a closed pull request the aggregator needs."""

    number: int
    html_url: str
    merged: bool
    merged_at: datetime | None
    labels: tuple[str, ...]


@dataclass(frozen=True)
class ReviewSummary:
    """A single review, with the platform state normalised to upper case."""

    reviewer_username: str
    state: str


class CodeHostClientProtocol(Protocol):
    """Paginated read access to pull requests and their reviews."""

    platform: Platform

    async def list_closed_pull_requests(
        self, repository: str, page: int, per_page: int
    ) -> list[PullRequestSummary]:
        """Return one page of closed pull requests (empty past the end).

        Raises:
            UpstreamFetchError: The page could not be fetched.
        """
        ...

    async def list_reviews(self, repository: str, number: int) -> list[ReviewSummary]:
        """Return every review of pull request `number`.

        Raises:
            UpstreamFetchError: The reviews could not be fetched.
        """
        ...
