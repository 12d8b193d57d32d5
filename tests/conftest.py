"""
Pytest configuration and shared fixtures for Kredits Bridge tests.

Testing Standards:
- Async tests run in asyncio auto mode (configured in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from datetime import datetime, timezone

import pytest

from kredits_bridge.domain.models.contributor import Contributor, ExternalAccount
from kredits_bridge.infrastructure.stubs import (
    BlobStoreStub,
    ChatNotifierStub,
    ContributorDirectoryStub,
    LedgerStub,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from kredits_bridge import __version__

    return __version__


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    return FakeTimeAuthority(frozen_at=datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def alice() -> Contributor:
    return Contributor(
        id=1,
        name="Alice",
        blob_ref="QmAlice",
        accounts=frozenset(
            {
                ExternalAccount("github.com", "alice-gh"),
                ExternalAccount("gitea.kosmos.org", "alice"),
                ExternalAccount("wiki.kosmos.org", "Alice"),
                ExternalAccount("zoom.us", "Alice A."),
            }
        ),
    )


@pytest.fixture
def bob() -> Contributor:
    return Contributor(
        id=2,
        name="Bob",
        blob_ref="QmBob",
        accounts=frozenset(
            {
                ExternalAccount("github.com", "bob-gh"),
                ExternalAccount("gitea.kosmos.org", "bob"),
                ExternalAccount("zoom.us", "Bob B."),
            }
        ),
    )


@pytest.fixture
def directory(alice: Contributor, bob: Contributor) -> ContributorDirectoryStub:
    return ContributorDirectoryStub([alice, bob])


@pytest.fixture
def ledger() -> LedgerStub:
    return LedgerStub(signer_address="0xsigner", transaction_count=42)


@pytest.fixture
def blob_store() -> BlobStoreStub:
    return BlobStoreStub()


@pytest.fixture
def notifier() -> ChatNotifierStub:
    return ChatNotifierStub()
