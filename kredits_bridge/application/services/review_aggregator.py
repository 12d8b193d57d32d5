"""Review aggregator: kredits for reviewing merged pull requests.

Batch flow over a date window [start, end]:
1. Page through each repository's closed pull requests until an empty page.
2. Keep merged pull requests, merged within the window, carrying a
   recognized kredits label.
3. Fetch their reviews; keep APPROVED and REJECTED ones.
4. Record {pull request, review, kredits amount} per reviewer.
5. Per platform, resolve each reviewer and sum into one entry per contributor.
6. Merge the platforms by contributor name into one draft per contributor.

Repositories and pull requests are fetched concurrently. A failed page or
review listing is logged and skipped; unresolved reviewers are logged and
skipped. Neither aborts the run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from kredits_bridge.application.ports.code_host import (
    CodeHostClientProtocol,
    PullRequestSummary,
)
from kredits_bridge.application.ports.time_authority import TimeAuthorityProtocol
from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.application.services.classifier import kredits_label
from kredits_bridge.application.services.recipient_resolver import RecipientResolver
from kredits_bridge.domain.errors import ResolutionError, UpstreamFetchError
from kredits_bridge.domain.models.contribution import (
    ContributionDraft,
    ContributionKind,
    Platform,
)
from kredits_bridge.domain.models.contributor import Contributor
from kredits_bridge.domain.models.review import ReviewRecord, ReviewState

DEFAULT_PAGE_SIZE = 100
MAX_CONSECUTIVE_PAGE_FAILURES = 3

_KREDITED_STATES = {state.value for state in ReviewState}


@dataclass
class ReviewContribution:
    """Summed review kredits of one contributor.

    Attributes:
        contributor: The resolved contributor.
        usernames: (platform, username) pairs merged into this entry.
        amount: Total kredits across all platforms.
        pull_request_urls: Every reviewed pull request, in collection order.
    """

    contributor: Contributor
    usernames: list[tuple[Platform, str]] = field(default_factory=list)
    amount: int = 0
    pull_request_urls: list[str] = field(default_factory=list)

    def to_draft(self, date: str, time: str, description: str) -> ContributionDraft:
        platform, username = self.usernames[0]
        return ContributionDraft(
            recipient_external_id=username,
            platform=platform,
            amount=self.amount,
            kind=ContributionKind.DEV,
            date=date,
            time=time,
            description=description,
            details={"pullRequests": list(self.pull_request_urls)},
        )


@dataclass
class ReviewAggregation:
    """Outcome of one aggregation run.

    Attributes:
        drafts: One (contributor, draft) pair per contributor.
        unresolved: Reviewers that matched no contributor.
        failures: Human-readable description of every skipped fetch.
    """

    drafts: list[tuple[Contributor, ContributionDraft]] = field(default_factory=list)
    unresolved: list[tuple[Platform, str]] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)


def group_by_reviewer(records: Sequence[ReviewRecord]) -> dict[str, list[ReviewRecord]]:
    grouped: dict[str, list[ReviewRecord]] = {}
    for record in records:
        grouped.setdefault(record.reviewer_username, []).append(record)
    return grouped


class ReviewAggregator(LoggingMixin):
    """Collects review records from code hosts and sums them per contributor."""

    def __init__(
        self,
        clients: Sequence[CodeHostClientProtocol],
        resolver: RecipientResolver,
        label_amounts: Mapping[str, int],
        time_authority: TimeAuthorityProtocol,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_consecutive_page_failures: int = MAX_CONSECUTIVE_PAGE_FAILURES,
    ) -> None:
        """Initialize the aggregator.

        Args:
            clients: One client per platform, in merge order.
            resolver: Resolver for reviewer usernames.
            label_amounts: kredits label to amount table for reviews.
            time_authority: Clock for the draft date.
            page_size: Pull requests per page.
            max_consecutive_page_failures: Failed pages in a row after which
                a repository is given up.
        """
        self._clients = {client.platform: client for client in clients}
        self._resolver = resolver
        self._label_amounts = dict(label_amounts)
        self._time = time_authority
        self._page_size = page_size
        self._max_page_failures = max_consecutive_page_failures
        self._init_logger()

    def qualifies(self, pull_request: PullRequestSummary, start: datetime, end: datetime) -> bool:
        """Merged within [start, end] and carrying a recognized kredits label."""
        if not pull_request.merged or pull_request.merged_at is None:
            return False
        if pull_request.merged_at < start or pull_request.merged_at > end:
            return False
        return kredits_label(pull_request.labels, self._label_amounts) is not None

    async def _collect_pull_request(
        self,
        client: CodeHostClientProtocol,
        repository: str,
        pull_request: PullRequestSummary,
        failures: list[str],
    ) -> list[ReviewRecord]:
        try:
            reviews = await client.list_reviews(repository, pull_request.number)
        except UpstreamFetchError as e:
            self._log_operation(
                "collect_reviews",
                platform=client.platform.value,
                repository=repository,
                number=pull_request.number,
            ).error("reviews_fetch_failed", error=str(e), url=e.url)
            failures.append(
                f"{client.platform.value} {repository}#{pull_request.number}: {e}"
            )
            return []

        label = kredits_label(pull_request.labels, self._label_amounts)
        assert label is not None
        amount = self._label_amounts[label]

        return [
            ReviewRecord(
                platform=client.platform,
                repository=repository,
                pull_request_number=pull_request.number,
                pull_request_url=pull_request.html_url,
                reviewer_username=review.reviewer_username,
                review_state=ReviewState(review.state),
                kredits_amount=amount,
            )
            for review in reviews
            if review.state in _KREDITED_STATES
        ]

    async def _collect_repository(
        self,
        client: CodeHostClientProtocol,
        repository: str,
        start: datetime,
        end: datetime,
        failures: list[str],
    ) -> list[ReviewRecord]:
        log = self._log_operation(
            "collect_repository", platform=client.platform.value, repository=repository
        )
        records: list[ReviewRecord] = []
        page = 1
        consecutive_failures = 0

        while True:
            try:
                pull_requests = await client.list_closed_pull_requests(
                    repository, page=page, per_page=self._page_size
                )
            except UpstreamFetchError as e:
                log.error("pull_requests_page_fetch_failed", page=page, error=str(e), url=e.url)
                failures.append(f"{client.platform.value} {repository} page {page}: {e}")
                consecutive_failures += 1
                if consecutive_failures >= self._max_page_failures:
                    log.error("repository_paging_aborted", page=page)
                    break
                page += 1
                continue

            consecutive_failures = 0
            if not pull_requests:
                break

            qualifying = [pr for pr in pull_requests if self.qualifies(pr, start, end)]
            results = await asyncio.gather(
                *(
                    self._collect_pull_request(client, repository, pr, failures)
                    for pr in qualifying
                )
            )
            for result in results:
                records.extend(result)
            page += 1

        log.info("repository_collected", pages=page, reviews=len(records))
        return records

    async def collect_reviews(
        self,
        platform: Platform,
        repositories: Sequence[str],
        start: datetime,
        end: datetime,
        failures: list[str] | None = None,
    ) -> dict[str, list[ReviewRecord]]:
        """Collect qualifying reviews on one platform, grouped by reviewer."""
        client = self._clients[platform]
        failures = failures if failures is not None else []
        results = await asyncio.gather(
            *(
                self._collect_repository(client, repository, start, end, failures)
                for repository in repositories
            )
        )
        records = [record for result in results for record in result]
        return group_by_reviewer(records)

    def _merge(
        self,
        platform: Platform,
        grouped: Mapping[str, list[ReviewRecord]],
        contributors: list[Contributor],
        merged: dict[str, ReviewContribution],
        unresolved: list[tuple[Platform, str]],
    ) -> None:
        for username, records in grouped.items():
            try:
                contributor = self._resolver.resolve_from(contributors, platform, username)
            except ResolutionError:
                self._log_operation(
                    "merge", platform=platform.value, username=username
                ).warning("reviewer_unresolved", reviews=len(records))
                unresolved.append((platform, username))
                continue

            entry = merged.setdefault(contributor.name, ReviewContribution(contributor))
            entry.usernames.append((platform, username))
            entry.amount += sum(record.kredits_amount for record in records)
            entry.pull_request_urls.extend(record.pull_request_url for record in records)

    async def aggregate(
        self,
        repositories: Mapping[Platform, Sequence[str]],
        start: datetime,
        end: datetime,
    ) -> ReviewAggregation:
        """Run the full aggregation.

        Args:
            repositories: Repository names to scan, per platform. Platforms
                are merged in mapping order.
            start: Earliest merge time (inclusive).
            end: Latest merge time (inclusive).

        Returns:
            ReviewAggregation with one draft per contributor.
        """
        log = self._log_operation("aggregate", start=start.isoformat(), end=end.isoformat())
        aggregation = ReviewAggregation()

        platforms = [p for p in repositories if p in self._clients]
        grouped_per_platform = await asyncio.gather(
            *(
                self.collect_reviews(p, repositories[p], start, end, aggregation.failures)
                for p in platforms
            )
        )

        try:
            contributors = await self._resolver.contributors()
        except UpstreamFetchError as e:
            log.error("contributor_directory_fetch_failed", error=str(e), url=e.url)
            aggregation.failures.append(f"contributor directory: {e}")
            contributors = []

        merged: dict[str, ReviewContribution] = {}
        for platform, grouped in zip(platforms, grouped_per_platform):
            self._merge(platform, grouped, contributors, merged, aggregation.unresolved)

        now = self._time.utcnow()
        date, time = now.strftime("%Y-%m-%d"), now.strftime("%H:%M:%SZ")
        description = f"PR reviews from {start:%Y-%m-%d} to {end:%Y-%m-%d}"
        aggregation.drafts = [
            (entry.contributor, entry.to_draft(date, time, description))
            for entry in merged.values()
            if entry.amount > 0
        ]

        log.info(
            "reviews_aggregated",
            contributors=len(aggregation.drafts),
            unresolved=len(aggregation.unresolved),
            failures=len(aggregation.failures),
        )
        return aggregation
