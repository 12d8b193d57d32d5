"""In-memory wiki recent changes feed."""

from __future__ import annotations

from kredits_bridge.application.ports.wiki import WikiChange
from kredits_bridge.domain.errors import UpstreamFetchError


class WikiClientStub:
    """Serves a fixed list of changes, filtered by timestamp."""

    def __init__(
        self,
        changes: list[WikiChange] | None = None,
        base_url: str = "https://wiki.kosmos.org/",
    ) -> None:
        self.base_url = base_url
        self.changes = list(changes or [])
        self.fail = False
        self.requested_since: list[str | None] = []

    async def fetch_recent_changes(self, since: str | None = None) -> list[WikiChange]:
        self.requested_since.append(since)
        if self.fail:
            raise UpstreamFetchError("Wiki unavailable", url=f"{self.base_url}api.php")
        if since is None:
            return list(self.changes)
        return [c for c in self.changes if c.timestamp > since]
