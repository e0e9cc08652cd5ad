"""Error types for the event relay.

Exception Hierarchy:
    RelayError (base)
    ├── ConfigurationError - Invalid or missing startup configuration
    └── PublishError - Downstream publish failures
"""

from typing import Any


class RelayError(Exception):
    """Base exception for all relay errors.

    Attributes:
        message: Human-readable error message.
        details: Additional error details.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RelayError):
    """Route or startup configuration is unusable.

    Always fatal: the service must not start serving with it.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, details=details)
        self.path = path


class PublishError(RelayError):
    """Publishing to the message bus failed.

    Never propagated to the HTTP caller; converted to a failed PublishResult.
    """

    def __init__(
        self,
        message: str,
        *,
        topic: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["topic"] = topic
        super().__init__(message, details=details)
        self.topic = topic
