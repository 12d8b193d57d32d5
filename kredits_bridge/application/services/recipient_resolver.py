"""Recipient resolution: external (platform, username) to a Contributor."""

from __future__ import annotations

from collections.abc import Mapping

from kredits_bridge.application.ports.ledger import ContributorDirectoryProtocol
from kredits_bridge.application.services.base import LoggingMixin
from kredits_bridge.domain.errors import ResolutionError
from kredits_bridge.domain.models.contribution import Platform
from kredits_bridge.domain.models.contributor import Contributor

DEFAULT_PLATFORM_SITES: dict[Platform, str] = {
    Platform.GITHUB: "github.com",
    Platform.GITEA: "gitea.kosmos.org",
    Platform.MEDIAWIKI: "wiki.kosmos.org",
    Platform.ZOOM: "zoom.us",
}


class RecipientResolver(LoggingMixin):
    """Maps external identities to contributors.

    The directory is fetched fresh on every call, so newly added
    contributors are picked up without a restart. When several
    contributors claim the same account the first one in directory order
    wins and a warning is logged.
    """

    def __init__(
        self,
        directory: ContributorDirectoryProtocol,
        platform_sites: Mapping[Platform, str] | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            directory: Contributor directory capability.
            platform_sites: Account site for each platform; defaults to
                DEFAULT_PLATFORM_SITES.
        """
        self._directory = directory
        self._platform_sites = dict(DEFAULT_PLATFORM_SITES)
        if platform_sites:
            self._platform_sites.update(platform_sites)
        self._init_logger()

    def site_for(self, platform: Platform) -> str:
        return self._platform_sites[platform]

    async def contributors(self) -> list[Contributor]:
        """Fetch the current directory listing."""
        return await self._directory.all()

    async def resolve(self, platform: Platform, username: str) -> Contributor:
        """Return the contributor owning `username` on `platform`.

        Raises:
            ResolutionError: No contributor has this account.
        """
        contributors = await self.contributors()
        return self.resolve_from(contributors, platform, username)

    def resolve_from(
        self, contributors: list[Contributor], platform: Platform, username: str
    ) -> Contributor:
        """Resolve against an already fetched directory listing.

        Raises:
            ResolutionError: No contributor has this account.
        """
        site = self.site_for(platform)
        matches = [c for c in contributors if c.has_account(site, username)]

        if not matches:
            raise ResolutionError(platform.value, username)

        if len(matches) > 1:
            self._log_operation(
                "resolve", platform=platform.value, username=username
            ).warning(
                "ambiguous_contributor_match",
                contributor_ids=[c.id for c in matches],
                selected_id=matches[0].id,
            )

        return matches[0]
