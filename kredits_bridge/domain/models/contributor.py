"""Contributor directory records (read-only to this service)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ExternalAccount:
    """An identity of a contributor on an external site."""

    site: str
    username: str


@dataclass(frozen=True)
class Contributor:
    """Internal contributor identity credited by an award.

    Attributes:
        id: Contributor id on the ledger.
        name: Display name.
        blob_ref: Blob store hash of the contributor profile document.
        accounts: External identities linked to this contributor.
    """

    id: int
    name: str
    blob_ref: str | None = None
    accounts: frozenset[ExternalAccount] = field(default_factory=frozenset)

    def has_account(self, site: str, username: str) -> bool:
        """Return True if the contributor owns (site, username)."""
        return ExternalAccount(site=site, username=username) in self.accounts

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contributor":
        """Create from a directory API record.

        Accounts are read from the `accounts` list; legacy records that
        only carry `github_username` / `gitea_username` / `wiki_username`
        fields are mapped onto the corresponding sites.
        """
        accounts = {
            ExternalAccount(site=a["site"], username=a["username"])
            for a in data.get("accounts") or []
            if a.get("site") and a.get("username")
        }
        for key, site in _LEGACY_ACCOUNT_FIELDS.items():
            if data.get(key):
                accounts.add(ExternalAccount(site=site, username=data[key]))

        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            blob_ref=data.get("ipfsHash") or data.get("blob_ref"),
            accounts=frozenset(accounts),
        )


_LEGACY_ACCOUNT_FIELDS = {
    "github_username": "github.com",
    "gitea_username": "gitea.kosmos.org",
    "wiki_username": "wiki.kosmos.org",
}
