"""In-memory stubs of the application ports.

Used by tests, by local development when no ledger gateway is
configured, and as the chat sink when KREDITS_CHAT_URL is unset.

WARNING: These stubs are NOT for production use.
Production implementations are in kredits_bridge/infrastructure/adapters/.
"""

from kredits_bridge.infrastructure.stubs.blob_store_stub import BlobStoreStub
from kredits_bridge.infrastructure.stubs.chat_notifier_stub import ChatNotifierStub
from kredits_bridge.infrastructure.stubs.code_host_stub import CodeHostStub
from kredits_bridge.infrastructure.stubs.ledger_stub import (
    ContributorDirectoryStub,
    LedgerStub,
)
from kredits_bridge.infrastructure.stubs.meeting_client_stub import MeetingClientStub
from kredits_bridge.infrastructure.stubs.wiki_client_stub import WikiClientStub

__all__: list[str] = [
    "BlobStoreStub",
    "ChatNotifierStub",
    "CodeHostStub",
    "ContributorDirectoryStub",
    "LedgerStub",
    "MeetingClientStub",
    "WikiClientStub",
]
