"""Application-level exception types for pdbridge."""

from __future__ import annotations


class BridgeError(Exception):
    """Base exception for pdbridge."""


class FramingError(BridgeError):
    """Raised for a record that cannot be decoded into an inbound message."""


class RecordTooLargeError(FramingError):
    """Raised when a pending record exceeds the configured size limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"record exceeds {limit} bytes")
        self.limit = limit


class StartupError(BridgeError):
    """Base exception for fatal startup failures."""


class ScriptNotSpecifiedError(StartupError):
    """Raised when no user script path was given."""

    def __init__(self) -> None:
        super().__init__("No script specified")


class ScriptLoadError(StartupError):
    """Raised when the user script cannot be located or executed."""
