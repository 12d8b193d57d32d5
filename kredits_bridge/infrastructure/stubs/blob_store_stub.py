"""In-memory content-addressed blob store."""

from __future__ import annotations

import hashlib

from kredits_bridge.domain.errors import UpstreamFetchError


class BlobStoreStub:
    """Stores blobs in a dict keyed by their sha256 hex digest.

    Set `fail` to make put() raise UpstreamFetchError.
    """

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.fail = False

    async def put(self, content: bytes) -> str:
        if self.fail:
            raise UpstreamFetchError("Blob store unavailable", url="stub://blobs")
        content_hash = hashlib.sha256(content).hexdigest()
        self.blobs[content_hash] = content
        return content_hash

    async def get(self, content_hash: str) -> bytes:
        try:
            return self.blobs[content_hash]
        except KeyError:
            raise UpstreamFetchError(
                f"No blob {content_hash}", url=f"stub://blobs/{content_hash}", status_code=404
            ) from None
