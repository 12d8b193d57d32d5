"""Ports (capability interfaces) consumed by the application services."""

from kredits_bridge.application.ports.blob_store import BlobStoreProtocol
from kredits_bridge.application.ports.chat_notifier import ChatNotifierProtocol
from kredits_bridge.application.ports.code_host import (
    CodeHostClientProtocol,
    PullRequestSummary,
    ReviewSummary,
)
from kredits_bridge.application.ports.ledger import (
    ContributorDirectoryProtocol,
    LedgerProtocol,
)
from kredits_bridge.application.ports.meeting import (
    MeetingClientProtocol,
    MeetingParticipant,
)
from kredits_bridge.application.ports.time_authority import TimeAuthorityProtocol
from kredits_bridge.application.ports.wiki import WikiChange, WikiClientProtocol

__all__ = [
    "BlobStoreProtocol",
    "ChatNotifierProtocol",
    "CodeHostClientProtocol",
    "ContributorDirectoryProtocol",
    "LedgerProtocol",
    "MeetingClientProtocol",
    "MeetingParticipant",
    "PullRequestSummary",
    "ReviewSummary",
    "TimeAuthorityProtocol",
    "WikiChange",
    "WikiClientProtocol",
]
