"""Error taxonomy for contribution attribution.

Propagation policy:
- ConfigurationError: fatal, raised before any processing starts.
- ResolutionError: draft abandoned, chat notification issued.
- UpstreamFetchError: recovered at one page / one pull request's
  reviews / one meeting's participant list; siblings continue.
- SubmissionError: nonce permanently consumed, never retried.
- ValidationError: detail document rejected, draft dropped.
"""

from __future__ import annotations

from kredits_bridge.domain.exceptions import KreditsError


class ConfigurationError(KreditsError):
    """Raised when a required secret or setting is missing.

    Attributes:
        missing: Names of the missing environment variables.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class ResolutionError(KreditsError):
    """Raised when an external identity matches no contributor.

    Attributes:
        platform: Platform the username belongs to.
        username: The external username that could not be resolved.
    """

    def __init__(self, platform: str, username: str) -> None:
        super().__init__(f"No contributor found for {platform} user {username}")
        self.platform = platform
        self.username = username


class UpstreamFetchError(KreditsError):
    """Raised when an HTTP call to an external platform fails.

    Attributes:
        url: The URL that was requested.
        status_code: HTTP status, or None for transport failures.
    """

    def __init__(
        self, message: str, url: str, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class SubmissionError(KreditsError):
    """Raised when the ledger rejects or fails a transaction.

    Attributes:
        nonce: Nonce the transaction was sent with, if one was assigned.
        reason: Error reported by the ledger or transport.
    """

    def __init__(self, reason: str, nonce: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.nonce = nonce


class ValidationError(KreditsError):
    """Raised when a contribution detail document fails schema validation.

    Attributes:
        messages: One entry per schema violation.
    """

    def __init__(self, messages: list[str]) -> None:
        super().__init__("Invalid contribution document: " + "; ".join(messages))
        self.messages = messages
