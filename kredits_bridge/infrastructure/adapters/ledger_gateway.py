"""HTTP gateway to the Kredits ledger.

The gateway service holds the signing wallet and talks to the chain;
this adapter only exposes the capabilities the bridge needs: transaction
count, balance, contribution submission and the contributor directory.
"""

from __future__ import annotations

from typing import Any

import httpx

from kredits_bridge.domain.errors import SubmissionError, UpstreamFetchError
from kredits_bridge.domain.models.contributor import Contributor
from kredits_bridge.infrastructure.adapters.http import JsonHttpClient


class HttpLedgerGateway(JsonHttpClient):
    """Implements LedgerProtocol and ContributorDirectoryProtocol."""

    def __init__(
        self,
        base_url: str,
        signer_address: str,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self._signer_address = signer_address

    @property
    def signer_address(self) -> str:
        return self._signer_address

    async def get_transaction_count(self, address: str) -> int:
        data = await self.get_json(f"/accounts/{address}/transaction-count")
        return int(data["count"])

    async def get_balance(self, address: str) -> float:
        data = await self.get_json(f"/accounts/{address}/balance")
        return float(data["balance"])

    async def submit(self, attributes: dict[str, Any], nonce: int) -> dict[str, Any]:
        try:
            response = await self.request(
                "POST",
                "/contributions",
                json={"from": self._signer_address, "nonce": nonce, "attributes": attributes},
            )
            result = response.json()
        except UpstreamFetchError as e:
            raise SubmissionError(str(e), nonce=nonce) from e
        except ValueError as e:
            raise SubmissionError("Ledger returned an invalid response", nonce=nonce) from e

        if not isinstance(result, dict):
            raise SubmissionError("Ledger returned an invalid response", nonce=nonce)
        if not result.get("hash"):
            raise SubmissionError(
                result.get("error", "Ledger returned no transaction hash"), nonce=nonce
            )
        return result

    async def all(self) -> list[Contributor]:
        data = await self.get_json("/contributors")
        return [Contributor.from_dict(record) for record in data]

    async def find_by_account(self, site: str, username: str) -> Contributor | None:
        try:
            data = await self.get_json(
                "/contributors/search", params={"site": site, "username": username}
            )
        except UpstreamFetchError as e:
            if e.status_code == 404:
                return None
            raise
        return Contributor.from_dict(data) if data else None
