"""Base exception classes for the Kredits Bridge domain layer."""


class KreditsError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so the
    API, the batch runner and the background workers can tell expected
    failures apart from programming errors.
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
