"""Infrastructure adapters for Kredits Bridge.

Adapters implement the ports defined in the application layer on top of
the external platforms' HTTP APIs.
"""

from kredits_bridge.infrastructure.adapters.chat_notifier import HttpChatNotifier
from kredits_bridge.infrastructure.adapters.code_hosts import GiteaClient, GitHubClient
from kredits_bridge.infrastructure.adapters.ipfs_blob_store import IpfsBlobStore
from kredits_bridge.infrastructure.adapters.ledger_gateway import HttpLedgerGateway
from kredits_bridge.infrastructure.adapters.mediawiki import MediaWikiClient
from kredits_bridge.infrastructure.adapters.zoom import ZoomClient

__all__: list[str] = [
    "GiteaClient",
    "GitHubClient",
    "HttpChatNotifier",
    "HttpLedgerGateway",
    "IpfsBlobStore",
    "MediaWikiClient",
    "ZoomClient",
]
