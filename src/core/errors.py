"""
Error taxonomy for snapshot acquisition
"""
from typing import Optional


class FetchError(Exception):
    """Base class for every failure while acquiring upstream data."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NetworkError(FetchError):
    """Connection failure or non-2xx response. Transient, may be retried."""
    pass


class FetchTimeoutError(NetworkError):
    """The request did not complete within its timeout."""
    pass


class DecodeError(FetchError):
    """Malformed or unexpected payload. Never retried."""
    pass


class ExhaustedError(FetchError):
    """Retry budget spent without a successful response."""

    def __init__(self, message: str, attempts: int, last_error: Optional[Exception] = None, **details):
        super().__init__(message, {"attempts": attempts, **details})
        self.attempts = attempts
        self.last_error = last_error


class StaleSnapshotError(Exception):
    """A snapshot older than (or equal to) the current one was published."""
    pass
