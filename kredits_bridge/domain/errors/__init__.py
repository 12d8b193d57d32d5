"""Domain errors for Kredits Bridge.

Only ConfigurationError is allowed to terminate the process; every
other error is recovered at the smallest affected unit of work.
"""

from kredits_bridge.domain.errors.kredits import (
    ConfigurationError,
    ResolutionError,
    SubmissionError,
    UpstreamFetchError,
    ValidationError,
)

__all__: list[str] = [
    "ConfigurationError",
    "ResolutionError",
    "SubmissionError",
    "UpstreamFetchError",
    "ValidationError",
]
