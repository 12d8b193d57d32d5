"""Chat notifier that only records and logs messages."""

from __future__ import annotations

import structlog

log = structlog.get_logger()


class ChatNotifierStub:
    """Keeps posted messages in memory and logs them.

    Attributes:
        messages: (room_id, message) pairs in posting order.
    """

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    async def post(self, room_id: str, message: str) -> None:
        self.messages.append((room_id, message))
        log.info("chat_notification", room=room_id, message=message)

    def messages_for(self, room_id: str) -> list[str]:
        return [message for room, message in self.messages if room == room_id]
