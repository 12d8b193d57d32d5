"""Event normalizers: raw platform events to contribution drafts.

Each adapter handles one declared event type and implements
`normalize(payload) -> list[ContributionDraft]`. The registry dispatches
on (platform, event type) as declared by the platform, never by
inspecting the payload shape.

Adapters:
- CodeHostIssueNormalizer: closed GitHub/Gitea issues
- CodeHostPullRequestNormalizer: closed and merged GitHub/Gitea pull requests
- WikiEditBatchNormalizer: one wiki editor's batch of edits
- MeetingEndedNormalizer: ended Zoom meetings

Normalizers never resolve recipients; they only decide who the external
recipients are and what they earn.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from kredits_bridge.application.ports.meeting import MeetingClientProtocol
from kredits_bridge.application.ports.wiki import WikiChange
from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.application.services.classifier import Classifier
from kredits_bridge.domain.errors import UpstreamFetchError
from kredits_bridge.domain.models.contribution import (
    ContributionDraft,
    ContributionKind,
    Platform,
)

ISSUES_EVENT = "issues"
PULL_REQUEST_EVENT = "pull_request"
WIKI_EDIT_BATCH_EVENT = "edit_batch"
MEETING_ENDED_EVENT = "meeting.ended"

MEETING_DESCRIPTION = "Team/Community Call"


@dataclass(frozen=True)
class PlatformEvent:
    """A platform event awaiting normalization.

    Attributes:
        platform: Platform that sent the event.
        event_type: Event type as declared by the platform.
        payload: Unwrapped event body.
        correlation_id: Correlation id of the delivery.
    """

    platform: Platform
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    correlation_id: str = ""


class EventNormalizerProtocol(Protocol):
    """One platform event type to zero or more drafts."""

    platform: Platform
    event_type: str

    async def normalize(self, payload: dict[str, Any]) -> list[ContributionDraft]:
        ...


def split_timestamp(timestamp: str) -> tuple[str, str]:
    """Split an ISO 8601 timestamp into UTC (date, time) strings.

    >>> split_timestamp("2019-05-01T18:12:30+02:00")
    ('2019-05-01', '16:12:30Z')
    """
    parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%d"), parsed.strftime("%H:%M:%SZ")


def _label_names(item: dict[str, Any]) -> list[str]:
    return [label["name"] for label in item.get("labels") or [] if label.get("name")]


def _recipients(item: dict[str, Any]) -> list[str]:
    """Assignees if any, else the author. Never both."""
    assignees = [a["login"] for a in item.get("assignees") or [] if a.get("login")]
    if assignees:
        return assignees
    return [item["user"]["login"]]


class _CodeHostNormalizer(LoggingMixin, ABC):
    """Shared rules for issues and pull requests."""

    event_type = ""
    item_key = ""

    def __init__(
        self,
        platform: Platform,
        classifier: Classifier,
        repo_blacklist: Iterable[str] = (),
    ) -> None:
        self.platform = platform
        self._classifier = classifier
        self._repo_blacklist = frozenset(repo_blacklist)
        self._init_logger()

    @abstractmethod
    def qualifies(self, payload: dict[str, Any]) -> bool:
        """Whether the event action earns kredits."""

    @abstractmethod
    def completed_at(self, item: dict[str, Any]) -> str:
        """Timestamp the contribution is dated with."""

    def web_url(self, item: dict[str, Any], repository: dict[str, Any]) -> str:
        return item["html_url"]

    async def normalize(self, payload: dict[str, Any]) -> list[ContributionDraft]:
        item = payload.get(self.item_key) or {}
        repository = payload.get("repository") or {}
        repo_name = repository.get("full_name", "")
        log = self._log_operation(
            "normalize",
            platform=self.platform.value,
            event_type=self.event_type,
            repository=repo_name,
            number=item.get("number"),
        )

        if not self.qualifies(payload):
            log.debug("event_not_qualifying", action=payload.get("action"))
            return []

        if repo_name in self._repo_blacklist:
            log.debug("repository_blacklisted")
            return []

        labels = _label_names(item)
        amount, kind = self._classifier.classify(labels)
        if amount == 0:
            log.info("kredits_amount_zero", labels=labels)
            return []

        date, time = split_timestamp(self.completed_at(item))
        url = self.web_url(item, repository)
        description = f"{repo_name}: {item.get('title', '')}"
        details = {
            "repository": repo_name,
            self.item_key: {
                "number": item.get("number"),
                "title": item.get("title"),
                "labels": labels,
                "url": url,
            },
        }

        drafts = [
            ContributionDraft(
                recipient_external_id=recipient,
                platform=self.platform,
                amount=amount,
                kind=kind,
                date=date,
                time=time,
                description=description,
                url=url,
                details=details,
            )
            for recipient in _recipients(item)
        ]
        log.info("event_normalized", amount=amount, kind=kind.value, drafts=len(drafts))
        return drafts


class CodeHostIssueNormalizer(_CodeHostNormalizer):
    """Closed issues on GitHub or Gitea."""

    event_type = ISSUES_EVENT
    item_key = "issue"

    def qualifies(self, payload: dict[str, Any]) -> bool:
        return payload.get("action") == "closed"

    def completed_at(self, item: dict[str, Any]) -> str:
        return item["closed_at"]

    def web_url(self, item: dict[str, Any], repository: dict[str, Any]) -> str:
        if item.get("html_url"):
            return item["html_url"]
        return f"{repository.get('html_url', '')}/issues/{item.get('number')}"


class CodeHostPullRequestNormalizer(_CodeHostNormalizer):
    """Closed and merged pull requests on GitHub or Gitea."""

    event_type = PULL_REQUEST_EVENT
    item_key = "pull_request"

    def qualifies(self, payload: dict[str, Any]) -> bool:
        pull_request = payload.get("pull_request") or {}
        return payload.get("action") == "closed" and bool(pull_request.get("merged"))

    def completed_at(self, item: dict[str, Any]) -> str:
        return item["merged_at"]


def _unique_titles(changes: list[WikiChange]) -> str:
    titles = dict.fromkeys(f'"{c.title}"' for c in changes)
    return ", ".join(titles)


class WikiEditBatchNormalizer(LoggingMixin):
    """All edits by one wiki user within a polling window.

    Payload: {"user": str, "changes": list[WikiChange]}
    """

    platform = Platform.MEDIAWIKI
    event_type = WIKI_EDIT_BATCH_EVENT

    def __init__(self, classifier: Classifier, wiki_url: str) -> None:
        self._classifier = classifier
        self._wiki_url = wiki_url if wiki_url.endswith("/") else wiki_url + "/"
        self._init_logger()

    def describe(self, changes: list[WikiChange], characters_added: int) -> str:
        created = [c for c in changes if c.type == "new"]
        edited = [c for c in changes if c.type == "edit"]
        clauses = []
        if created:
            clauses.append(f"Created {_unique_titles(created)}.")
        if edited:
            clauses.append(f"Edited {_unique_titles(edited)}.")
        clauses.append(f"Added {characters_added} characters of text.")
        return "Wiki contributions: " + " ".join(clauses)

    def web_url(self, user: str, changes: list[WikiChange]) -> str:
        if len(changes) > 1:
            return f"{self._wiki_url}Special:Contributions/{user}?hideMinor=1"
        change = changes[0]
        return (
            f"{self._wiki_url}index.php?title={change.title}"
            f"&diff={change.revision_id}&oldid={change.old_revision_id}"
        )

    async def normalize(self, payload: dict[str, Any]) -> list[ContributionDraft]:
        user: str = payload["user"]
        changes: list[WikiChange] = list(payload.get("changes") or [])
        if not changes:
            return []

        characters_added = sum(c.characters_added for c in changes)
        amount, kind = self._classifier.classify_wiki_edits(characters_added)
        date, time = split_timestamp(max(c.timestamp for c in changes))

        self._log_operation("normalize", user=user).info(
            "wiki_edits_normalized",
            edits=len(changes),
            characters_added=characters_added,
            amount=amount,
        )

        return [
            ContributionDraft(
                recipient_external_id=user,
                platform=self.platform,
                amount=amount,
                kind=kind,
                date=date,
                time=time,
                description=self.describe(changes, characters_added),
                url=self.web_url(user, changes),
                details={
                    "pagesCreated": [c.title for c in changes if c.type == "new"],
                    "pagesChanged": [c.title for c in changes if c.type == "edit"],
                    "charsAdded": characters_added,
                },
            )
        ]


class MeetingEndedNormalizer(LoggingMixin):
    """Ended video calls: one fixed award per unique participant.

    Payload: the unwrapped Zoom event payload, {"object": {...meeting...}}.
    """

    platform = Platform.ZOOM
    event_type = MEETING_ENDED_EVENT

    def __init__(
        self,
        meeting_client: MeetingClientProtocol,
        amount: int = 500,
        min_duration: int = 15,
        min_participants: int = 3,
    ) -> None:
        self._meeting_client = meeting_client
        self._amount = amount
        self._min_duration = min_duration
        self._min_participants = min_participants
        self._init_logger()

    async def normalize(self, payload: dict[str, Any]) -> list[ContributionDraft]:
        meeting = payload.get("object") or {}
        meeting_uuid = meeting.get("uuid", "")
        duration = int(meeting.get("duration") or 0)
        log = self._log_operation("normalize", meeting_uuid=meeting_uuid, duration=duration)

        if duration < self._min_duration:
            log.info("meeting_too_short")
            return []

        try:
            participants = await self._meeting_client.get_participants(meeting_uuid)
        except UpstreamFetchError as e:
            log.error("meeting_participants_fetch_failed", error=str(e), url=e.url)
            return []

        names = list(dict.fromkeys(p.display_name for p in participants if p.display_name))
        if len(names) < self._min_participants:
            log.info("meeting_too_few_participants", participants=len(names))
            return []

        date, time = split_timestamp(meeting["end_time"])
        details = {
            "meeting": {
                "uuid": meeting_uuid,
                "topic": meeting.get("topic"),
                "duration": duration,
                "participants": names,
            }
        }
        log.info("meeting_normalized", participants=len(names))

        return [
            ContributionDraft(
                recipient_external_id=name,
                platform=self.platform,
                amount=self._amount,
                kind=ContributionKind.COMMUNITY,
                date=date,
                time=time,
                description=MEETING_DESCRIPTION,
                details=details,
            )
            for name in names
        ]


class EventNormalizerRegistry(LoggingMixin):
    """Dispatches platform events to the adapter registered for them."""

    def __init__(self, normalizers: Iterable[EventNormalizerProtocol] = ()) -> None:
        self._normalizers: dict[tuple[Platform, str], EventNormalizerProtocol] = {}
        self._init_logger()
        for normalizer in normalizers:
            self.register(normalizer)

    def register(self, normalizer: EventNormalizerProtocol) -> None:
        key = (normalizer.platform, normalizer.event_type)
        if key in self._normalizers:
            raise ValueError(f"Normalizer already registered for {key[0].value}/{key[1]}")
        self._normalizers[key] = normalizer

    def handles(self, platform: Platform, event_type: str) -> bool:
        return (platform, event_type) in self._normalizers

    async def normalize(self, event: PlatformEvent) -> list[ContributionDraft]:
        """Return the drafts for `event`; unhandled event types yield none."""
        normalizer = self._normalizers.get((event.platform, event.event_type))
        if normalizer is None:
            self._log_operation(
                "normalize", platform=event.platform.value, event_type=event.event_type
            ).debug("event_type_ignored")
            return []
        return await normalizer.normalize(event.payload)
