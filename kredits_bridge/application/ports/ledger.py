"""Ledger and contributor directory ports.

The ledger is an external, transaction-ordered value-recording system.
This service only sees it through these capabilities; wallet keys and
node access live behind the implementation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from kredits_bridge.domain.models.contributor import Contributor


@runtime_checkable
class LedgerProtocol(Protocol):
    """Write side of the ledger for one signing identity.

    Usage:
        count = await ledger.get_transaction_count(ledger.signer_address)
        result = await ledger.submit(attributes, nonce=count)
        print(result["hash"])
    """

    @property
    def signer_address(self) -> str:
        """Address of the identity that signs every transaction."""
        ...

    async def get_transaction_count(self, address: str) -> int:
        """Return the number of transactions sent from `address`.

        Used once at startup to seed the sequencer's nonce counter.
        """
        ...

    async def submit(self, attributes: dict[str, Any], nonce: int) -> dict[str, Any]:
        """Submit a contribution transaction.

        Args:
            attributes: Contribution attributes (contributorId, amount, ...).
            nonce: Nonce to sign the transaction with.

        Returns:
            Mapping containing at least the transaction `hash`.

        Raises:
            SubmissionError: The ledger or the transport rejected the write.
        """
        ...

    async def get_balance(self, address: str) -> float:
        """Return the native-token balance of `address`."""
        ...


@runtime_checkable
class ContributorDirectoryProtocol(Protocol):
    """Read-only view of the contributor directory."""

    async def all(self) -> list[Contributor]:
        """Return every contributor, in directory order."""
        ...

    async def find_by_account(self, site: str, username: str) -> Contributor | None:
        """Return the contributor owning (site, username), if any."""
        ...
