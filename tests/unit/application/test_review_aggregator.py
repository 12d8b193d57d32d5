"""Unit tests for ReviewAggregator."""

from datetime import datetime, timezone

import pytest

from kredits_bridge.application.ports.code_host import PullRequestSummary, ReviewSummary
from kredits_bridge.application.services.recipient_resolver import RecipientResolver
from kredits_bridge.application.services.review_aggregator import ReviewAggregator
from kredits_bridge.config.kredits_config import DEFAULT_REVIEW_LABEL_AMOUNTS
from kredits_bridge.domain.models.contribution import ContributionKind, Platform
from kredits_bridge.domain.models.contributor import Contributor
from kredits_bridge.infrastructure.stubs import CodeHostStub, ContributorDirectoryStub
from tests.helpers.fake_time_authority import FakeTimeAuthority

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
END = datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc)
IN_WINDOW = datetime(2024, 1, 15, tzinfo=timezone.utc)


def pull_request(
    number: int,
    labels: tuple[str, ...] = ("kredits-1",),
    merged_at: datetime | None = IN_WINDOW,
    host: str = "https://github.com/67P/kredits-web",
) -> PullRequestSummary:
    return PullRequestSummary(
        number=number,
        html_url=f"{host}/pull/{number}",
        merged=merged_at is not None,
        merged_at=merged_at,
        labels=labels,
    )


def approved(username: str) -> ReviewSummary:
    return ReviewSummary(reviewer_username=username, state="APPROVED")


@pytest.fixture
def github() -> CodeHostStub:
    return CodeHostStub(Platform.GITHUB)


@pytest.fixture
def gitea() -> CodeHostStub:
    return CodeHostStub(Platform.GITEA)


@pytest.fixture
def aggregator(
    github: CodeHostStub,
    gitea: CodeHostStub,
    directory: ContributorDirectoryStub,
    fake_time_authority: FakeTimeAuthority,
) -> ReviewAggregator:
    return ReviewAggregator(
        [github, gitea],
        RecipientResolver(directory),
        DEFAULT_REVIEW_LABEL_AMOUNTS,
        fake_time_authority,
        page_size=2,
    )


class TestQualifies:
    """Tests for the pull request filter."""

    @pytest.mark.parametrize(
        "pr,expected",
        [
            (pull_request(1), True),
            (pull_request(1, merged_at=None), False),
            (pull_request(1, merged_at=datetime(2023, 12, 31, tzinfo=timezone.utc)), False),
            (pull_request(1, merged_at=END), True),
            (pull_request(1, labels=("bug",)), False),
            (pull_request(1, labels=("kredits-5",)), False),
        ],
    )
    def test_filter(self, aggregator: ReviewAggregator, pr: PullRequestSummary, expected: bool) -> None:
        assert aggregator.qualifies(pr, START, END) is expected


class TestAggregate:
    """Tests for the full aggregation."""

    async def test_sums_across_platforms_per_contributor(
        self,
        aggregator: ReviewAggregator,
        github: CodeHostStub,
        gitea: CodeHostStub,
        alice: Contributor,
    ) -> None:
        github.add_pull_request("67P/kredits-web", pull_request(1), [approved("alice-gh")])
        gitea.add_pull_request(
            "kosmos/chef",
            pull_request(2, labels=("kredits-2",), host="https://gitea.kosmos.org/kosmos/chef"),
            [ReviewSummary("alice", "REJECTED")],
        )

        result = await aggregator.aggregate(
            {Platform.GITHUB: ["67P/kredits-web"], Platform.GITEA: ["kosmos/chef"]},
            START,
            END,
        )

        assert len(result.drafts) == 1
        contributor, draft = result.drafts[0]
        assert contributor == alice
        assert draft.amount == 400
        assert draft.kind == ContributionKind.DEV
        assert draft.description == "PR reviews from 2024-01-01 to 2024-01-31"
        assert draft.details["pullRequests"] == [
            "https://github.com/67P/kredits-web/pull/1",
            "https://gitea.kosmos.org/kosmos/chef/pull/2",
        ]
        assert draft.date == "2024-03-01"

    async def test_sums_reviews_within_one_repository(
        self, aggregator: ReviewAggregator, github: CodeHostStub, alice: Contributor
    ) -> None:
        github.add_pull_request("67P/kredits-web", pull_request(1), [approved("alice-gh")])
        github.add_pull_request(
            "67P/kredits-web",
            pull_request(2, labels=("kredits-2",)),
            [ReviewSummary("alice-gh", "CHANGES_REQUESTED"), approved("alice-gh")],
        )

        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)

        assert len(result.drafts) == 1
        contributor, draft = result.drafts[0]
        assert contributor == alice
        assert draft.amount == 400
        assert draft.details["pullRequests"] == [
            "https://github.com/67P/kredits-web/pull/1",
            "https://github.com/67P/kredits-web/pull/2",
        ]

    async def test_comment_reviews_earn_nothing(
        self, aggregator: ReviewAggregator, github: CodeHostStub
    ) -> None:
        github.add_pull_request(
            "67P/kredits-web", pull_request(1), [ReviewSummary("alice-gh", "COMMENTED")]
        )
        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)
        assert result.drafts == []

    async def test_unresolved_reviewer_is_skipped(
        self, aggregator: ReviewAggregator, github: CodeHostStub, bob: Contributor
    ) -> None:
        github.add_pull_request(
            "67P/kredits-web", pull_request(1), [approved("stranger"), approved("bob-gh")]
        )

        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)

        assert [c for c, _ in result.drafts] == [bob]
        assert result.unresolved == [(Platform.GITHUB, "stranger")]

    async def test_pages_until_empty(
        self, aggregator: ReviewAggregator, github: CodeHostStub
    ) -> None:
        for number in range(1, 6):
            github.add_pull_request("67P/kredits-web", pull_request(number), [approved("bob-gh")])

        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)

        assert github.page_calls == [("67P/kredits-web", p) for p in (1, 2, 3, 4)]
        assert result.drafts[0][1].amount == 500

    async def test_failed_page_is_skipped(
        self, aggregator: ReviewAggregator, github: CodeHostStub
    ) -> None:
        for number in range(1, 6):
            github.add_pull_request("67P/kredits-web", pull_request(number), [approved("bob-gh")])
        github.failing_pages.add(("67P/kredits-web", 2))

        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)

        assert result.drafts[0][1].amount == 300
        assert len(result.failures) == 1

    async def test_repository_abandoned_after_consecutive_page_failures(
        self, aggregator: ReviewAggregator, github: CodeHostStub
    ) -> None:
        github.failing_pages.update(("67P/kredits-web", p) for p in range(1, 10))

        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)

        assert len(github.page_calls) == 3
        assert result.drafts == []

    async def test_failed_review_listing_skips_only_that_pull_request(
        self, aggregator: ReviewAggregator, github: CodeHostStub
    ) -> None:
        github.add_pull_request("67P/kredits-web", pull_request(1), [approved("bob-gh")])
        github.add_pull_request("67P/kredits-web", pull_request(2), [approved("bob-gh")])
        github.failing_reviews.add(("67P/kredits-web", 1))

        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)

        assert result.drafts[0][1].details["pullRequests"] == [
            "https://github.com/67P/kredits-web/pull/2"
        ]
        assert result.failures == [
            "github 67P/kredits-web#1: Reviews of 67P/kredits-web#1 failed"
        ]

    async def test_directory_outage_resolves_nobody(
        self,
        aggregator: ReviewAggregator,
        github: CodeHostStub,
        directory: ContributorDirectoryStub,
    ) -> None:
        github.add_pull_request("67P/kredits-web", pull_request(1), [approved("bob-gh")])
        directory.unavailable = True

        result = await aggregator.aggregate({Platform.GITHUB: ["67P/kredits-web"]}, START, END)

        assert result.drafts == []
        assert result.unresolved == [(Platform.GITHUB, "bob-gh")]
        assert result.failures[0].startswith("contributor directory")
