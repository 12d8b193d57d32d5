"""GitHub and Gitea clients for the review aggregator."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from kredits_bridge.application.ports.code_host import PullRequestSummary, ReviewSummary
from kredits_bridge.domain.models.contribution import Platform
from kredits_bridge.infrastructure.adapters.http import JsonHttpClient

GITHUB_API_URL = "https://api.github.com"

# Review states that count as a rejection on each platform.
_REJECTED_STATES = {"CHANGES_REQUESTED", "REQUEST_CHANGES", "REJECTED"}


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _normalize_state(state: str) -> str:
    state = (state or "").upper()
    if state in _REJECTED_STATES:
        return "REJECTED"
    return state


def _review_summaries(reviews: list[dict[str, Any]]) -> list[ReviewSummary]:
    return [
        ReviewSummary(
            reviewer_username=review["user"]["login"],
            state=_normalize_state(review.get("state", "")),
        )
        for review in reviews
        if review.get("user")
    ]


def _labels(pull_request: dict[str, Any]) -> tuple[str, ...]:
    return tuple(label["name"] for label in pull_request.get("labels") or [])


class GitHubClient(JsonHttpClient):
    """GitHub REST API client (pull requests and reviews)."""

    platform = Platform.GITHUB

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"token {token}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def list_closed_pull_requests(
        self, repository: str, page: int, per_page: int
    ) -> list[PullRequestSummary]:
        pulls = await self.get_json(
            f"/repos/{repository}/pulls",
            params={"state": "closed", "per_page": per_page, "page": page},
        )
        return [
            PullRequestSummary(
                number=pr["number"],
                html_url=pr["html_url"],
                merged=pr.get("merged_at") is not None,
                merged_at=_parse_timestamp(pr.get("merged_at")),
                labels=_labels(pr),
            )
            for pr in pulls
        ]

    async def list_reviews(self, repository: str, number: int) -> list[ReviewSummary]:
        reviews = await self.get_json(
            f"/repos/{repository}/pulls/{number}/reviews", params={"per_page": 100}
        )
        return _review_summaries(reviews)


class GiteaClient(JsonHttpClient):
    """Gitea API v1 client (pull requests and reviews)."""

    platform = Platform.GITEA

    def __init__(
        self,
        token: str,
        base_url: str = "https://gitea.kosmos.org",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            f"{base_url.rstrip('/')}/api/v1",
            headers={"Authorization": f"token {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def list_closed_pull_requests(
        self, repository: str, page: int, per_page: int
    ) -> list[PullRequestSummary]:
        pulls = await self.get_json(
            f"/repos/{repository}/pulls",
            params={"state": "closed", "limit": per_page, "page": page},
        )
        return [
            PullRequestSummary(
                number=pr["number"],
                html_url=pr["html_url"],
                merged=bool(pr.get("merged")),
                merged_at=_parse_timestamp(pr.get("merged_at")),
                labels=_labels(pr),
            )
            for pr in pulls or []
        ]

    async def list_reviews(self, repository: str, number: int) -> list[ReviewSummary]:
        reviews = await self.get_json(f"/repos/{repository}/pulls/{number}/reviews")
        return _review_summaries(reviews or [])
