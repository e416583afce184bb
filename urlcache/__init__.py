"""
Keep a local file mirror of a remote resource fresh using conditional requests.
"""
from .errors import (
    CallbackError,
    CommitError,
    ErrorKind,
    FetchError,
    ProbeError,
    SetupError,
    UrlCacheError,
)
from .freshness import FreshnessScheme, SchemeKind
from .http_client import FetchResult, ResourceClient
from .poller import CachePoller, PollerState
from .mirror import start

__all__ = [
    # Entry point
    "start",
    "CachePoller",
    "PollerState",
    # Freshness
    "FreshnessScheme",
    "SchemeKind",
    # Transport
    "ResourceClient",
    "FetchResult",
    # Errors
    "ErrorKind",
    "UrlCacheError",
    "SetupError",
    "ProbeError",
    "FetchError",
    "CallbackError",
    "CommitError",
]
