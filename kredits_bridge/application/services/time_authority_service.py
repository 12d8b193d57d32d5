"""Production time authority backed by the system clock and asyncio."""

import asyncio
import time
from datetime import datetime, timezone

from kredits_bridge.application.ports.time_authority import TimeAuthorityProtocol


class TimeAuthorityService(TimeAuthorityProtocol):
    """System clock implementation of TimeAuthorityProtocol."""

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
