"""In-memory ledger and contributor directory."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from kredits_bridge.application.ports.ledger import (
    ContributorDirectoryProtocol,
    LedgerProtocol,
)
from kredits_bridge.domain.errors import SubmissionError, UpstreamFetchError
from kredits_bridge.domain.models.contributor import Contributor


@dataclass(frozen=True)
class RecordedTransaction:
    """A transaction accepted by LedgerStub."""

    nonce: int
    attributes: dict[str, Any]
    hash: str


class LedgerStub(LedgerProtocol):
    """Records submitted transactions in memory.

    Failure injection:
        fail_nonces: nonces whose submission raises SubmissionError.
        balance: value returned by get_balance().

    Attributes:
        transactions: Accepted transactions, in submission order.
        submitted_nonces: Every nonce submit() was called with, including
            failed ones.
    """

    def __init__(
        self,
        signer_address: str = "0xsigner",
        transaction_count: int = 0,
        balance: float = 1.0,
        fail_nonces: set[int] | None = None,
    ) -> None:
        self._signer_address = signer_address
        self._transaction_count = transaction_count
        self.balance = balance
        self.fail_nonces = set(fail_nonces or ())
        self.transactions: list[RecordedTransaction] = []
        self.submitted_nonces: list[int] = []

    @property
    def signer_address(self) -> str:
        return self._signer_address

    async def get_transaction_count(self, address: str) -> int:
        return self._transaction_count

    async def get_balance(self, address: str) -> float:
        return self.balance

    async def submit(self, attributes: dict[str, Any], nonce: int) -> dict[str, Any]:
        self.submitted_nonces.append(nonce)
        if nonce in self.fail_nonces:
            raise SubmissionError(f"nonce {nonce} rejected", nonce=nonce)

        payload = json.dumps({"nonce": nonce, **attributes}, sort_keys=True)
        tx_hash = "0x" + hashlib.sha256(payload.encode()).hexdigest()
        self.transactions.append(RecordedTransaction(nonce, dict(attributes), tx_hash))
        return {"hash": tx_hash}


class ContributorDirectoryStub(ContributorDirectoryProtocol):
    """Fixed contributor list.

    Set `unavailable` to make every lookup raise UpstreamFetchError.
    """

    def __init__(self, contributors: list[Contributor] | None = None) -> None:
        self.contributors = list(contributors or [])
        self.unavailable = False

    def _check_available(self) -> None:
        if self.unavailable:
            raise UpstreamFetchError("Directory unavailable", url="stub://contributors")

    async def all(self) -> list[Contributor]:
        self._check_available()
        return list(self.contributors)

    async def find_by_account(self, site: str, username: str) -> Contributor | None:
        self._check_available()
        for contributor in self.contributors:
            if contributor.has_account(site, username):
                return contributor
        return None
