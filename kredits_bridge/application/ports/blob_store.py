"""Content-addressed blob store port."""

from typing import Protocol


class BlobStoreProtocol(Protocol):
    """Content-addressed storage for contribution detail documents."""

    async def put(self, content: bytes) -> str:
        """Store `content` and return its content hash."""
        ...

    async def get(self, content_hash: str) -> bytes:
        """Return the content stored under `content_hash`."""
        ...
