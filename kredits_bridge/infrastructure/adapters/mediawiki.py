"""MediaWiki recent changes client."""

from __future__ import annotations

import httpx
import structlog

from kredits_bridge.application.ports.wiki import WikiChange
from kredits_bridge.domain.errors import UpstreamFetchError
from kredits_bridge.infrastructure.adapters.http import JsonHttpClient

log = structlog.get_logger()

RECENT_CHANGES_PARAMS = {
    "action": "query",
    "format": "json",
    "list": "recentchanges",
    "rctype": "edit|new",
    "rcshow": "!minor|!bot|!anon|!redirect",
    "rclimit": "max",
    "rcprop": "ids|title|timestamp|user|sizes|comment|flags",
}


class MediaWikiClient(JsonHttpClient):
    """Reads human, non-minor edits from a wiki's api.php."""

    def __init__(
        self,
        wiki_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            wiki_url: Wiki base URL, e.g. https://wiki.kosmos.org/
        """
        self.wiki_url = wiki_url if wiki_url.endswith("/") else wiki_url + "/"
        super().__init__(self.wiki_url, timeout=timeout, transport=transport)

    async def fetch_recent_changes(self, since: str | None = None) -> list[WikiChange]:
        params = dict(RECENT_CHANGES_PARAMS)
        if since:
            params["rcend"] = since

        data = await self.get_json("/api.php", params=params)
        try:
            entries = data["query"]["recentchanges"]
        except (KeyError, TypeError) as e:
            url = f"{self.base_url}/api.php"
            raise UpstreamFetchError(f"Unexpected response from {url}", url=url) from e

        url = f"{self.base_url}/api.php"
        changes: list[WikiChange] = []
        for rc in entries:
            if not isinstance(rc, dict):
                raise UpstreamFetchError(f"Malformed recent change from {url}", url=url)
            if "user" not in rc:
                # Revision-deleted edits carry "userhidden" instead of a user.
                log.info("wiki_change_skipped", reason="user_hidden", revid=rc.get("revid"))
                continue
            try:
                changes.append(
                    WikiChange(
                        user=rc["user"],
                        title=rc["title"],
                        type=rc["type"],
                        old_length=int(rc.get("oldlen", 0)),
                        new_length=int(rc.get("newlen", 0)),
                        revision_id=int(rc.get("revid", 0)),
                        old_revision_id=int(rc.get("old_revid", 0)),
                        timestamp=rc["timestamp"],
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise UpstreamFetchError(f"Malformed recent change from {url}", url=url) from e
        return changes
