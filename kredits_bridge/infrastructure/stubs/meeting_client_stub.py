"""In-memory meeting participant lists."""

from __future__ import annotations

from kredits_bridge.application.ports.meeting import MeetingParticipant
from kredits_bridge.domain.errors import UpstreamFetchError


class MeetingClientStub:
    """Returns configured participant lists; unknown meetings raise."""

    def __init__(self, participants: dict[str, list[str]] | None = None) -> None:
        self.participants = {
            uuid: [MeetingParticipant(display_name=name) for name in names]
            for uuid, names in (participants or {}).items()
        }

    async def get_participants(self, meeting_uuid: str) -> list[MeetingParticipant]:
        if meeting_uuid not in self.participants:
            raise UpstreamFetchError(
                f"Unknown meeting {meeting_uuid}",
                url=f"stub://past_meetings/{meeting_uuid}/participants",
                status_code=404,
            )
        return list(self.participants[meeting_uuid])
