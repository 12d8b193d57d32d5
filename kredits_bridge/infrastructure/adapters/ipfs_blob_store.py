"""Blob store on top of the IPFS HTTP API."""

from __future__ import annotations

import httpx

from kredits_bridge.domain.errors import UpstreamFetchError
from kredits_bridge.infrastructure.adapters.http import JsonHttpClient


class IpfsBlobStore(JsonHttpClient):
    """Stores contribution documents via /api/v0/add and /api/v0/cat."""

    def __init__(
        self,
        api_url: str = "http://localhost:5001",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_url, timeout=timeout, transport=transport)

    async def put(self, content: bytes) -> str:
        response = await self.request(
            "POST",
            "/api/v0/add",
            params={"pin": "true"},
            files={"file": ("contribution.json", content, "application/json")},
        )
        try:
            return response.json()["Hash"]
        except (ValueError, KeyError) as e:
            url = f"{self.base_url}/api/v0/add"
            raise UpstreamFetchError("IPFS add returned no hash", url=url) from e

    async def get(self, content_hash: str) -> bytes:
        response = await self.request("POST", "/api/v0/cat", params={"arg": content_hash})
        return response.content
