"""Kredits Bridge configuration.

Settings are read from environment variables; a `.env` file in the
working directory (or its parent) is loaded first when present.

Environment Variables (Webhooks / chat):
- KREDITS_WEBHOOK_TOKEN: Secret path segment of the webhook URLs
- KREDITS_ROOM: Chat room receiving notifications
- KREDITS_CHAT_URL: Chat bot HTTP endpoint (notifications are only logged if unset)
- KREDITS_GITHUB_REPO_BLACKLIST / KREDITS_GITEA_REPO_BLACKLIST: Comma separated repos

Environment Variables (Amounts):
- KREDITS_LABEL_AMOUNTS: Label table for issues/PRs (default: kredits-1=500,kredits-2=1500,kredits-3=5000)
- KREDITS_REVIEW_LABEL_AMOUNTS: Label table for reviews (default: kredits-1=100,kredits-2=300,kredits-3=1000)
- KREDITS_WIKI_AMOUNTS: Three wiki tiers (default: 500,1500,5000)
- KREDITS_MEETING_AMOUNT: Amount per meeting participant (default: 500)
- KREDITS_MEETING_MIN_DURATION: Minimum meeting minutes (default: 15)
- KREDITS_MEETING_MIN_PARTICIPANTS: Minimum unique participants (default: 3)

Environment Variables (Ledger / blob store):
- KREDITS_LEDGER_URL: Ledger gateway base URL (default: http://localhost:7545)
- KREDITS_SIGNER_ADDRESS: Address of the signing identity
- KREDITS_SUBMISSION_COOLDOWN_SECONDS: Delay between transactions (default: 60)
- KREDITS_MIN_SIGNER_BALANCE: Balance below which the room is alerted (default: 0.0001)
- IPFS_API_HOST / IPFS_API_PORT / IPFS_API_PROTOCOL: Blob store API (default: localhost / 5001 / http)

Environment Variables (Integrations):
- KREDITS_MEDIAWIKI_URL: Wiki base URL, enables wiki polling when set
- KREDITS_MEDIAWIKI_POLL_INTERVAL: Seconds between polls (default: 86400)
- GITEA_URL: Gitea base URL (default: https://gitea.kosmos.org)
- ZOOM_API_TOKEN: Zoom API bearer token

Environment Variables (Review batch):
- GITHUB_TOKEN / GITEA_TOKEN: Required API tokens
- KREDITS_REPOS_FILE: JSON repository list (default: repos.json)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from kredits_bridge.domain.errors import ConfigurationError

DEFAULT_LABEL_AMOUNTS = {"kredits-1": 500, "kredits-2": 1500, "kredits-3": 5000}
DEFAULT_REVIEW_LABEL_AMOUNTS = {"kredits-1": 100, "kredits-2": 300, "kredits-3": 1000}
DEFAULT_WIKI_AMOUNTS = (500, 1500, 5000)


def load_env_file() -> None:
    """Load `.env` from the current or parent directory if present."""
    env_path = Path(".env")
    if not env_path.exists():
        env_path = Path("../.env")
    if env_path.exists():
        load_dotenv(env_path)


def _get_int_env(key: str, default: int) -> int:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_list_env(key: str) -> frozenset[str]:
    value = os.environ.get(key, "")
    return frozenset(item.strip() for item in value.split(",") if item.strip())


def parse_amount_table(value: str | None, default: dict[str, int]) -> dict[str, int]:
    """Parse a `label=amount,label=amount` table.

    Args:
        value: Raw environment value, may be None or empty.
        default: Table returned when `value` is empty or malformed.

    Returns:
        Mapping of label name to kredits amount.
    """
    if not value:
        return dict(default)
    table: dict[str, int] = {}
    for entry in value.split(","):
        label, sep, amount = entry.partition("=")
        if not sep:
            return dict(default)
        try:
            table[label.strip()] = int(amount)
        except ValueError:
            return dict(default)
    return table


def _parse_wiki_amounts(value: str | None) -> tuple[int, int, int]:
    if not value:
        return DEFAULT_WIKI_AMOUNTS
    try:
        tiers = tuple(int(v) for v in value.split(","))
    except ValueError:
        return DEFAULT_WIKI_AMOUNTS
    if len(tiers) != 3:
        return DEFAULT_WIKI_AMOUNTS
    return tiers  # type: ignore[return-value]


@dataclass(frozen=True)
class ContributionRulesConfig:
    """Tables and thresholds used to turn events into drafts.

    Attributes:
        label_amounts: kredits label to amount for issues and pull requests.
        review_label_amounts: kredits label to amount for reviews.
        wiki_amounts: Amount for each of the three wiki size tiers.
        meeting_amount: Amount awarded to each meeting participant.
        meeting_min_duration: Minimum meeting length in minutes.
        meeting_min_participants: Minimum unique participant count.
        github_repo_blacklist: GitHub repositories never awarded.
        gitea_repo_blacklist: Gitea repositories never awarded.
    """

    label_amounts: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_LABEL_AMOUNTS))
    review_label_amounts: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_REVIEW_LABEL_AMOUNTS)
    )
    wiki_amounts: tuple[int, int, int] = DEFAULT_WIKI_AMOUNTS
    meeting_amount: int = 500
    meeting_min_duration: int = 15
    meeting_min_participants: int = 3
    github_repo_blacklist: frozenset[str] = frozenset()
    gitea_repo_blacklist: frozenset[str] = frozenset()


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger gateway, signer and blob store settings."""

    url: str = "http://localhost:7545"
    signer_address: str = ""
    submission_cooldown_seconds: float = 60.0
    min_signer_balance: float = 0.0001
    ipfs_url: str = "http://localhost:5001"


@dataclass(frozen=True)
class IntegrationsConfig:
    """Webhook, chat and platform integration settings."""

    webhook_token: str = ""
    chat_room: str = ""
    chat_url: str | None = None
    gitea_url: str = "https://gitea.kosmos.org"
    mediawiki_url: str | None = None
    mediawiki_poll_interval: int = 86400
    zoom_api_token: str | None = None


@dataclass(frozen=True)
class KreditsConfig:
    """Application configuration."""

    rules: ContributionRulesConfig
    ledger: LedgerConfig
    integrations: IntegrationsConfig
    environment: str = "production"


@dataclass(frozen=True)
class ReviewBatchConfig:
    """Settings only the review batch run needs.

    Attributes:
        github_token: GitHub API token.
        gitea_token: Gitea API token.
        github_repositories: GitHub repositories to scan.
        gitea_repositories: Gitea repositories to scan.
    """

    github_token: str
    gitea_token: str
    github_repositories: tuple[str, ...] = ()
    gitea_repositories: tuple[str, ...] = ()


def load_config() -> KreditsConfig:
    """Load configuration from environment variables.

    Returns:
        KreditsConfig with all settings; missing optional values use defaults.
    """
    load_env_file()

    ipfs_url = "{}://{}:{}".format(
        os.environ.get("IPFS_API_PROTOCOL", "http"),
        os.environ.get("IPFS_API_HOST", "localhost"),
        os.environ.get("IPFS_API_PORT", "5001"),
    )

    return KreditsConfig(
        rules=ContributionRulesConfig(
            label_amounts=parse_amount_table(
                os.environ.get("KREDITS_LABEL_AMOUNTS"), DEFAULT_LABEL_AMOUNTS
            ),
            review_label_amounts=parse_amount_table(
                os.environ.get("KREDITS_REVIEW_LABEL_AMOUNTS"),
                DEFAULT_REVIEW_LABEL_AMOUNTS,
            ),
            wiki_amounts=_parse_wiki_amounts(os.environ.get("KREDITS_WIKI_AMOUNTS")),
            meeting_amount=_get_int_env("KREDITS_MEETING_AMOUNT", 500),
            meeting_min_duration=_get_int_env("KREDITS_MEETING_MIN_DURATION", 15),
            meeting_min_participants=_get_int_env("KREDITS_MEETING_MIN_PARTICIPANTS", 3),
            github_repo_blacklist=_get_list_env("KREDITS_GITHUB_REPO_BLACKLIST"),
            gitea_repo_blacklist=_get_list_env("KREDITS_GITEA_REPO_BLACKLIST"),
        ),
        ledger=LedgerConfig(
            url=os.environ.get("KREDITS_LEDGER_URL", "http://localhost:7545"),
            signer_address=os.environ.get("KREDITS_SIGNER_ADDRESS", ""),
            submission_cooldown_seconds=_get_float_env(
                "KREDITS_SUBMISSION_COOLDOWN_SECONDS", 60.0
            ),
            min_signer_balance=_get_float_env("KREDITS_MIN_SIGNER_BALANCE", 0.0001),
            ipfs_url=ipfs_url,
        ),
        integrations=IntegrationsConfig(
            webhook_token=os.environ.get("KREDITS_WEBHOOK_TOKEN", ""),
            chat_room=os.environ.get("KREDITS_ROOM", ""),
            chat_url=os.environ.get("KREDITS_CHAT_URL") or None,
            gitea_url=os.environ.get("GITEA_URL", "https://gitea.kosmos.org"),
            mediawiki_url=os.environ.get("KREDITS_MEDIAWIKI_URL") or None,
            mediawiki_poll_interval=_get_int_env("KREDITS_MEDIAWIKI_POLL_INTERVAL", 86400),
            zoom_api_token=os.environ.get("ZOOM_API_TOKEN") or None,
        ),
        environment=os.environ.get("ENVIRONMENT", "production"),
    )


def load_review_batch_config() -> ReviewBatchConfig:
    """Load the review batch settings.

    Raises:
        ConfigurationError: If GITHUB_TOKEN or GITEA_TOKEN is missing, or
            the repository list cannot be read.
    """
    load_env_file()

    github_token = os.environ.get("GITHUB_TOKEN")
    gitea_token = os.environ.get("GITEA_TOKEN")

    missing = []
    if not github_token:
        missing.append("GITHUB_TOKEN")
    if not gitea_token:
        missing.append("GITEA_TOKEN")
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            missing=missing,
        )

    repos_path = Path(os.environ.get("KREDITS_REPOS_FILE", "repos.json"))
    try:
        repos = json.loads(repos_path.read_text())
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read repository list {repos_path}: {e}") from e

    return ReviewBatchConfig(
        github_token=github_token,  # type: ignore[arg-type]
        gitea_token=gitea_token,  # type: ignore[arg-type]
        github_repositories=tuple(repos.get("github", [])),
        gitea_repositories=tuple(repos.get("gitea", [])),
    )
