"""review-kredits: award kredits for pull request reviews.

Scans the GitHub and Gitea repositories listed in repos.json for pull
requests merged within a date window, sums the kredits of every review
per contributor and submits one contribution per contributor.

Example:
    review-kredits --start 2024-01-01 --end 2024-01-31 --dry
    review-kredits --start 2024-01-01
"""

import asyncio
from datetime import datetime, time, timezone
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from kredits_bridge import __version__
from kredits_bridge.application.services.review_aggregator import (
    ReviewAggregation,
    ReviewAggregator,
)
from kredits_bridge.bootstrap.container import build_container
from kredits_bridge.bootstrap.logging import configure_structlog
from kredits_bridge.config.kredits_config import (
    KreditsConfig,
    ReviewBatchConfig,
    load_config,
    load_review_batch_config,
)
from kredits_bridge.domain.errors import ConfigurationError, UpstreamFetchError
from kredits_bridge.domain.models.contribution import Platform
from kredits_bridge.domain.models.submission import SubmissionStatus, SubmissionTask
from kredits_bridge.infrastructure.adapters.code_hosts import GiteaClient, GitHubClient

app = typer.Typer(
    name="review-kredits",
    help="Award kredits for pull request reviews",
    add_completion=False,
)
console = Console()


def parse_date(value: str, end_of_day: bool = False) -> datetime:
    """Parse YYYY-MM-DD or a full ISO timestamp into an aware UTC datetime.

    A bare date means the start of that day, or its last second when
    `end_of_day` is set.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise typer.BadParameter(f"Invalid date: {value}") from None
    if len(value) == 10:
        parsed = datetime.combine(
            parsed.date(), time(23, 59, 59) if end_of_day else time(0, 0)
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"review-kredits version {__version__}")
        raise typer.Exit()


def _aggregation_table(aggregation: ReviewAggregation) -> Table:
    table = Table(title="Review kredits")
    table.add_column("Contributor", style="cyan")
    table.add_column("Accounts")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Pull requests", justify="right")
    for contributor, draft in aggregation.drafts:
        table.add_row(
            contributor.name,
            draft.recipient_external_id,
            str(draft.amount),
            str(len(draft.details.get("pullRequests", []))),
        )
    return table


def _results_table(tasks: list[SubmissionTask]) -> Table:
    table = Table(title="Submitted contributions")
    table.add_column("Nonce", justify="right")
    table.add_column("Contributor", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Result")
    for task in tasks:
        if task.status == SubmissionStatus.CONFIRMED:
            result = f"[green]{task.transaction_hash}[/green]"
        else:
            result = f"[red]{task.error or task.status.value}[/red]"
        table.add_row(str(task.nonce), task.contributor.name, str(task.draft.amount), result)
    return table


def _print_problems(aggregation: ReviewAggregation) -> None:
    for platform, username in aggregation.unresolved:
        console.print(
            f"[yellow]Skipped:[/yellow] no contributor for {platform.value} user {username}"
        )
    for failure in aggregation.failures:
        console.print(f"[red]Fetch failed:[/red] {failure}")


async def run_review_kredits(
    config: KreditsConfig,
    batch: ReviewBatchConfig,
    start: datetime,
    end: datetime,
    dry: bool,
) -> tuple[ReviewAggregation, list[SubmissionTask]]:
    """Aggregate reviews and, unless `dry`, submit one draft per contributor."""
    container = build_container(config)
    github = GitHubClient(batch.github_token)
    gitea = GiteaClient(batch.gitea_token, base_url=config.integrations.gitea_url)
    try:
        aggregator = ReviewAggregator(
            [github, gitea],
            container.resolver,
            config.rules.review_label_amounts,
            container.time_authority,
        )
        aggregation = await aggregator.aggregate(
            {
                Platform.GITHUB: batch.github_repositories,
                Platform.GITEA: batch.gitea_repositories,
            },
            start,
            end,
        )
        if dry or not aggregation.drafts:
            return aggregation, []

        await container.sequencer.start()
        for contributor, draft in aggregation.drafts:
            await container.contribution_service.submit(draft, contributor)
        tasks = await container.sequencer.drain()
        return aggregation, tasks
    finally:
        await github.close()
        await gitea.close()
        await container.aclose()


@app.command()
def main(
    start: str = typer.Option(..., "--start", "-s", help="First merge date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(
        None, "--end", "-e", help="Last merge date (YYYY-MM-DD, default: now)"
    ),
    dry: bool = typer.Option(False, "--dry", help="Only show what would be submitted"),
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Award kredits for pull request reviews within a date window."""
    try:
        batch = load_review_batch_config()
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=1)

    configure_structlog(config.environment)
    start_at = parse_date(start)
    end_at = parse_date(end, end_of_day=True) if end else datetime.now(timezone.utc)
    if end_at < start_at:
        console.print("[red]Error:[/red] --end is before --start", style="bold")
        raise typer.Exit(code=1)

    console.print(
        f"Collecting reviews merged {start_at:%Y-%m-%d} to {end_at:%Y-%m-%d}...",
        style="dim",
    )
    try:
        aggregation, tasks = asyncio.run(
            run_review_kredits(config, batch, start_at, end_at, dry)
        )
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=1)
    except UpstreamFetchError as e:
        console.print(f"[red]Error:[/red] {e} ({e.url})", style="bold")
        raise typer.Exit(code=1)

    console.print(_aggregation_table(aggregation))
    _print_problems(aggregation)

    if dry:
        console.print("[yellow]Dry run, nothing submitted.[/yellow]")
        return
    if tasks:
        console.print(_results_table(tasks))
    failed = [t for t in tasks if t.status != SubmissionStatus.CONFIRMED]
    if failed or len(tasks) < len(aggregation.drafts):
        raise typer.Exit(code=2)


if __name__ == "__main__":
    app()
