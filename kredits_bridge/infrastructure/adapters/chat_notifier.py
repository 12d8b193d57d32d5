"""Chat notifier posting to the chat bot's HTTP endpoint."""

from __future__ import annotations

import httpx
import structlog

log = structlog.get_logger()


class HttpChatNotifier:
    """Posts {room, message} JSON to a chat bot endpoint.

    Delivery failures are logged and swallowed: a notification must never
    abort the work that produced it.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def post(self, room_id: str, message: str) -> None:
        try:
            response = await self._client.post(
                self._url, json={"room": room_id, "message": message}
            )
        except httpx.HTTPError as e:
            log.warning("chat_notification_failed", room=room_id, error=str(e))
            return

        if response.is_error:
            log.warning(
                "chat_notification_failed",
                room=room_id,
                status_code=response.status_code,
            )
            return
        log.debug("chat_notification_sent", room=room_id)
