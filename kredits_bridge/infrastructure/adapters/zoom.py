"""Zoom past meeting participants client."""

from __future__ import annotations

from urllib.parse import quote

import httpx

from kredits_bridge.application.ports.meeting import MeetingParticipant
from kredits_bridge.infrastructure.adapters.http import JsonHttpClient

ZOOM_API_URL = "https://api.zoom.us/v2"


def encode_meeting_uuid(meeting_uuid: str) -> str:
    """Encode a meeting UUID for use in a URL path.

    Zoom requires double encoding when the UUID starts with '/' or
    contains '//'.
    """
    encoded = quote(meeting_uuid, safe="")
    if meeting_uuid.startswith("/") or "//" in meeting_uuid:
        encoded = quote(encoded, safe="")
    return encoded


class ZoomClient(JsonHttpClient):
    """Zoom REST API client."""

    PAGE_SIZE = 300

    def __init__(
        self,
        token: str,
        base_url: str = ZOOM_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def get_participants(self, meeting_uuid: str) -> list[MeetingParticipant]:
        participants: list[MeetingParticipant] = []
        params: dict[str, str | int] = {"page_size": self.PAGE_SIZE}
        path = f"/past_meetings/{encode_meeting_uuid(meeting_uuid)}/participants"

        while True:
            data = await self.get_json(path, params=params)
            for p in data.get("participants") or []:
                participants.append(
                    MeetingParticipant(
                        display_name=p.get("name", ""),
                        user_id=p.get("user_id") or p.get("id"),
                    )
                )
            next_page_token = data.get("next_page_token")
            if not next_page_token:
                break
            params["next_page_token"] = next_page_token

        return participants
