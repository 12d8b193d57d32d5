"""Shared httpx plumbing for the platform adapters."""

from __future__ import annotations

from typing import Any

import httpx

from kredits_bridge.domain.errors import UpstreamFetchError

DEFAULT_TIMEOUT_SECONDS = 30.0


class JsonHttpClient:
    """Thin wrapper around httpx.AsyncClient returning decoded JSON.

    Every transport error and non-2xx response is raised as
    UpstreamFetchError carrying the requested URL.

    Example:
        async with JsonHttpClient("https://api.github.com") as client:
            pulls = await client.get_json("/repos/owner/name/pulls")
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "JsonHttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and return the successful response.

        Raises:
            UpstreamFetchError: Transport failure or non-2xx status.
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamFetchError(f"Request to {url} timed out", url=url) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"Request to {url} failed: {e}", url=url) from e

        if response.is_error:
            raise UpstreamFetchError(
                f"Unexpected response {response.status_code} from {url}",
                url=url,
                status_code=response.status_code,
            )
        return response

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.request("GET", path, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFetchError(
                f"Invalid JSON from {response.url}", url=str(response.url)
            ) from e
