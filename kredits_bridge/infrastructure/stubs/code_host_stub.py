"""In-memory code host serving pages of pull requests and their reviews."""

from __future__ import annotations

from kredits_bridge.application.ports.code_host import PullRequestSummary, ReviewSummary
from kredits_bridge.domain.errors import UpstreamFetchError
from kredits_bridge.domain.models.contribution import Platform


class CodeHostStub:
    """Code host with configurable data and failures.

    Attributes:
        pull_requests: Per repository, the full list of closed pull requests.
        reviews: Per (repository, number), the reviews of a pull request.
        failing_pages: (repository, page) pairs whose listing raises.
        failing_reviews: (repository, number) pairs whose review listing raises.
        page_calls: (repository, page) of every listing request.
    """

    def __init__(self, platform: Platform = Platform.GITHUB) -> None:
        self.platform = platform
        self.pull_requests: dict[str, list[PullRequestSummary]] = {}
        self.reviews: dict[tuple[str, int], list[ReviewSummary]] = {}
        self.failing_pages: set[tuple[str, int]] = set()
        self.failing_reviews: set[tuple[str, int]] = set()
        self.page_calls: list[tuple[str, int]] = []

    def add_pull_request(
        self,
        repository: str,
        pull_request: PullRequestSummary,
        reviews: list[ReviewSummary] | None = None,
    ) -> None:
        self.pull_requests.setdefault(repository, []).append(pull_request)
        self.reviews[(repository, pull_request.number)] = list(reviews or [])

    async def list_closed_pull_requests(
        self, repository: str, page: int, per_page: int
    ) -> list[PullRequestSummary]:
        self.page_calls.append((repository, page))
        if (repository, page) in self.failing_pages:
            raise UpstreamFetchError(
                f"Page {page} of {repository} failed",
                url=f"stub://{repository}/pulls?page={page}",
                status_code=502,
            )
        start = (page - 1) * per_page
        return self.pull_requests.get(repository, [])[start : start + per_page]

    async def list_reviews(self, repository: str, number: int) -> list[ReviewSummary]:
        if (repository, number) in self.failing_reviews:
            raise UpstreamFetchError(
                f"Reviews of {repository}#{number} failed",
                url=f"stub://{repository}/pulls/{number}/reviews",
                status_code=502,
            )
        return list(self.reviews.get((repository, number), []))
