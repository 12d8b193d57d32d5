"""Video conference port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MeetingParticipant:
    """A participant entry of an ended meeting."""

    display_name: str
    user_id: str | None = None


class MeetingClientProtocol(Protocol):
    """Read access to past meetings."""

    async def get_participants(self, meeting_uuid: str) -> list[MeetingParticipant]:
        """Return the participant list of an ended meeting.

        Raises:
            UpstreamFetchError: The participant list could not be fetched.
        """
        ...
