"""Time authority port.

Services needing the current time or a delay inject this instead of
calling datetime.now() or asyncio.sleep() directly, so tests can drive
time deterministically.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract source of time and delays."""

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return the current timezone-aware UTC time."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic clock value in seconds.

        Only differences between two values are meaningful.
        """
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the calling coroutine for `seconds`."""
        ...
