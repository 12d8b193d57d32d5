"""Fixtures wiring the real container to in-memory stubs."""

import pytest

from kredits_bridge.bootstrap.container import KreditsContainer, build_container
from kredits_bridge.config.kredits_config import (
    ContributionRulesConfig,
    IntegrationsConfig,
    KreditsConfig,
    LedgerConfig,
)
from kredits_bridge.infrastructure.stubs import (
    BlobStoreStub,
    ChatNotifierStub,
    ContributorDirectoryStub,
    LedgerStub,
    MeetingClientStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority

WEBHOOK_TOKEN = "s3cret"
ROOM = "kredits"


@pytest.fixture
def config() -> KreditsConfig:
    return KreditsConfig(
        rules=ContributionRulesConfig(github_repo_blacklist=frozenset({"67P/private"})),
        ledger=LedgerConfig(signer_address="0xsigner", submission_cooldown_seconds=60),
        integrations=IntegrationsConfig(webhook_token=WEBHOOK_TOKEN, chat_room=ROOM),
        environment="development",
    )


@pytest.fixture
def container(
    config: KreditsConfig,
    ledger: LedgerStub,
    directory: ContributorDirectoryStub,
    blob_store: BlobStoreStub,
    notifier: ChatNotifierStub,
    fake_time_authority: FakeTimeAuthority,
) -> KreditsContainer:
    return build_container(
        config,
        ledger=ledger,
        directory=directory,
        blob_store=blob_store,
        notifier=notifier,
        time_authority=fake_time_authority,
        meeting_client=MeetingClientStub(
            {"call-1": ["Alice A.", "Bob B.", "Guest"]}
        ),
    )
