"""
Error types raised while mirroring a remote resource.

Only SetupError ever reaches the caller of start(); every other kind is
caught by the poller, logged, and retried on the next interval.
"""
from enum import Enum


class ErrorKind(Enum):
    """Which step of the refresh sequence failed."""
    SETUP = "setup"          # Cache directory could not be created
    PROBE = "probe"          # HEAD request used to pick a freshness scheme
    FETCH = "fetch"          # Conditional GET
    CALLBACK = "callback"    # on_update rejected the data
    COMMIT = "commit"        # Writing or renaming the cache file


class UrlCacheError(Exception):
    """Base error carrying a structured kind plus a free-form message."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class SetupError(UrlCacheError):
    kind = ErrorKind.SETUP


class ProbeError(UrlCacheError):
    kind = ErrorKind.PROBE


class FetchError(UrlCacheError):
    kind = ErrorKind.FETCH


class CallbackError(UrlCacheError):
    kind = ErrorKind.CALLBACK


class CommitError(UrlCacheError):
    kind = ErrorKind.COMMIT
