"""Chat notification port.

Human-readable outcomes (unknown contributors, failed transactions,
an empty signer wallet) are posted to a chat room through this sink.
"""

from typing import Protocol


class ChatNotifierProtocol(Protocol):
    """Posts messages to a chat room.

    Implementations should log delivery failures rather than raise them;
    a notification must never abort the work that triggered it.
    """

    async def post(self, room_id: str, message: str) -> None:
        """Post `message` to `room_id`."""
        ...
