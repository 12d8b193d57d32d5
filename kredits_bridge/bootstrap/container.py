"""Composition root for the webhook service and the review batch.

build_container() creates exactly one SubmissionSequencer per process.
The API stores the container on app.state; the CLI keeps it local to
its run. Any port can be overridden, which is how tests run the full
wiring against the in-memory stubs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import structlog

from kredits_bridge.application.ports.blob_store import BlobStoreProtocol
from kredits_bridge.application.ports.chat_notifier import ChatNotifierProtocol
from kredits_bridge.application.ports.ledger import (
    ContributorDirectoryProtocol,
    LedgerProtocol,
)
from kredits_bridge.application.ports.meeting import MeetingClientProtocol
from kredits_bridge.application.ports.time_authority import TimeAuthorityProtocol
from kredits_bridge.application.ports.wiki import WikiClientProtocol
from kredits_bridge.application.services.classifier import Classifier
from kredits_bridge.application.services.contribution_service import ContributionService
from kredits_bridge.application.services.event_normalizer import (
    CodeHostIssueNormalizer,
    CodeHostPullRequestNormalizer,
    EventNormalizerRegistry,
    MeetingEndedNormalizer,
    WikiEditBatchNormalizer,
)
from kredits_bridge.application.services.recipient_resolver import (
    DEFAULT_PLATFORM_SITES,
    RecipientResolver,
)
from kredits_bridge.application.services.submission_sequencer import SubmissionSequencer
from kredits_bridge.application.services.time_authority_service import (
    TimeAuthorityService,
)
from kredits_bridge.application.services.webhook_intake import WebhookIntake
from kredits_bridge.application.services.wiki_poller import WikiChangesPoller
from kredits_bridge.config.kredits_config import KreditsConfig
from kredits_bridge.domain.errors import ConfigurationError
from kredits_bridge.domain.models.contribution import Platform
from kredits_bridge.infrastructure.adapters.chat_notifier import HttpChatNotifier
from kredits_bridge.infrastructure.adapters.ipfs_blob_store import IpfsBlobStore
from kredits_bridge.infrastructure.adapters.ledger_gateway import HttpLedgerGateway
from kredits_bridge.infrastructure.adapters.mediawiki import MediaWikiClient
from kredits_bridge.infrastructure.adapters.zoom import ZoomClient
from kredits_bridge.infrastructure.stubs.chat_notifier_stub import ChatNotifierStub

log = structlog.get_logger()


@dataclass
class KreditsContainer:
    """Every long-lived object of one process."""

    config: KreditsConfig
    ledger: LedgerProtocol
    directory: ContributorDirectoryProtocol
    blob_store: BlobStoreProtocol
    notifier: ChatNotifierProtocol
    time_authority: TimeAuthorityProtocol
    resolver: RecipientResolver
    registry: EventNormalizerRegistry
    sequencer: SubmissionSequencer
    contribution_service: ContributionService
    intake: WebhookIntake
    wiki_poller: WikiChangesPoller | None = None
    closeables: list[Any] = field(default_factory=list)

    async def aclose(self) -> None:
        """Close every HTTP client the container created."""
        for closeable in self.closeables:
            await closeable.close()
        self.closeables.clear()


def platform_sites(config: KreditsConfig) -> dict[Platform, str]:
    """Account site per platform, derived from the configured URLs."""
    sites = dict(DEFAULT_PLATFORM_SITES)
    gitea_host = urlparse(config.integrations.gitea_url).hostname
    if gitea_host:
        sites[Platform.GITEA] = gitea_host
    if config.integrations.mediawiki_url:
        wiki_host = urlparse(config.integrations.mediawiki_url).hostname
        if wiki_host:
            sites[Platform.MEDIAWIKI] = wiki_host
    return sites


def build_container(
    config: KreditsConfig,
    *,
    ledger: LedgerProtocol | None = None,
    directory: ContributorDirectoryProtocol | None = None,
    blob_store: BlobStoreProtocol | None = None,
    notifier: ChatNotifierProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    meeting_client: MeetingClientProtocol | None = None,
    wiki_client: WikiClientProtocol | None = None,
) -> KreditsContainer:
    """Wire the services for `config`.

    Ports that are not passed in are built from the configuration.

    Raises:
        ConfigurationError: No ledger was passed and KREDITS_SIGNER_ADDRESS
            is not set.
    """
    closeables: list[Any] = []
    rules = config.rules
    integrations = config.integrations

    if ledger is None or directory is None:
        if not config.ledger.signer_address:
            raise ConfigurationError(
                "Missing required environment variables: KREDITS_SIGNER_ADDRESS",
                missing=["KREDITS_SIGNER_ADDRESS"],
            )
        gateway = HttpLedgerGateway(config.ledger.url, config.ledger.signer_address)
        closeables.append(gateway)
        ledger = ledger or gateway
        directory = directory or gateway

    if blob_store is None:
        ipfs = IpfsBlobStore(config.ledger.ipfs_url)
        closeables.append(ipfs)
        blob_store = ipfs

    if notifier is None:
        if integrations.chat_url:
            http_notifier = HttpChatNotifier(integrations.chat_url)
            closeables.append(http_notifier)
            notifier = http_notifier
        else:
            log.warning("chat_url_not_configured", fallback="log_only")
            notifier = ChatNotifierStub()

    time_authority = time_authority or TimeAuthorityService()

    resolver = RecipientResolver(directory, platform_sites(config))
    classifier = Classifier(rules.label_amounts, rules.wiki_amounts)

    registry = EventNormalizerRegistry(
        [
            CodeHostIssueNormalizer(Platform.GITHUB, classifier, rules.github_repo_blacklist),
            CodeHostPullRequestNormalizer(
                Platform.GITHUB, classifier, rules.github_repo_blacklist
            ),
            CodeHostIssueNormalizer(Platform.GITEA, classifier, rules.gitea_repo_blacklist),
            CodeHostPullRequestNormalizer(
                Platform.GITEA, classifier, rules.gitea_repo_blacklist
            ),
        ]
    )

    if meeting_client is None and integrations.zoom_api_token:
        zoom = ZoomClient(integrations.zoom_api_token)
        closeables.append(zoom)
        meeting_client = zoom
    if meeting_client is not None:
        registry.register(
            MeetingEndedNormalizer(
                meeting_client,
                amount=rules.meeting_amount,
                min_duration=rules.meeting_min_duration,
                min_participants=rules.meeting_min_participants,
            )
        )
    else:
        log.info("meeting_integration_disabled", reason="ZOOM_API_TOKEN not set")

    sequencer = SubmissionSequencer(
        ledger,
        blob_store,
        notifier,
        integrations.chat_room,
        time_authority,
        cooldown_seconds=config.ledger.submission_cooldown_seconds,
    )
    contribution_service = ContributionService(
        resolver, sequencer, notifier, integrations.chat_room
    )

    wiki_poller = None
    if wiki_client is None and integrations.mediawiki_url:
        mediawiki = MediaWikiClient(integrations.mediawiki_url)
        closeables.append(mediawiki)
        wiki_client = mediawiki
    if wiki_client is not None:
        registry.register(WikiEditBatchNormalizer(classifier, wiki_client.base_url))
        wiki_poller = WikiChangesPoller(
            wiki_client, registry, contribution_service, time_authority
        )

    return KreditsContainer(
        config=config,
        ledger=ledger,
        directory=directory,
        blob_store=blob_store,
        notifier=notifier,
        time_authority=time_authority,
        resolver=resolver,
        registry=registry,
        sequencer=sequencer,
        contribution_service=contribution_service,
        intake=WebhookIntake(registry, contribution_service),
        wiki_poller=wiki_poller,
        closeables=closeables,
    )
