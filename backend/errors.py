"""
Error types shared by the façade, services and pages.
"""


class TrackerError(Exception):
    """Base class for errors shown to the user as a single message."""


class ValidationError(TrackerError):
    """Input rejected before any provider call was made."""


class ProviderError(TrackerError):
    """A provider call failed (network, constraint violation, authorization)."""

    def __init__(self, message: str, table: str = "", operation: str = ""):
        super().__init__(message)
        self.table = table
        self.operation = operation


class LoginRequiredError(TrackerError):
    """A write was attempted against the demo dataset."""

    def __init__(self, message: str = "ログインが必要です"):
        super().__init__(message)
