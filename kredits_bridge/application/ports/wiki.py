"""Wiki recent-changes port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class WikiChange:
    """One entry of the wiki's recent changes feed."""

    user: str
    title: str
    type: str  # "new" or "edit"
    old_length: int
    new_length: int
    revision_id: int
    old_revision_id: int
    timestamp: str

    @property
    def characters_added(self) -> int:
        return max(self.new_length - self.old_length, 0)


class WikiClientProtocol(Protocol):
    """Read access to a MediaWiki installation."""

    base_url: str

    async def fetch_recent_changes(self, since: str | None = None) -> list[WikiChange]:
        """Return non-minor, non-bot human edits newer than `since`.

        Raises:
            UpstreamFetchError: The feed could not be fetched.
        """
        ...
