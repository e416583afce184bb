"""
Core freshness scheme data structures.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from enum import Enum
from typing import Mapping, Optional

import requests

# Response metadata headers and their conditional-request counterparts
LAST_MODIFIED_HEADER = "Last-Modified"
IF_MODIFIED_SINCE_HEADER = "If-Modified-Since"
ETAG_HEADER = "ETag"
IF_NONE_MATCH_HEADER = "If-None-Match"


class SchemeKind(Enum):
    """Conditional-request mechanisms a server can support."""
    ENTITY_TAG = "entity_tag"       # ETag / If-None-Match
    MOD_TIME = "mod_time"           # Last-Modified / If-Modified-Since
    UNCONDITIONAL = "unconditional" # Always re-fetch


# kind -> (response header to observe, request header to send)
_HEADERS = {
    SchemeKind.ENTITY_TAG: (ETAG_HEADER, IF_NONE_MATCH_HEADER),
    SchemeKind.MOD_TIME: (LAST_MODIFIED_HEADER, IF_MODIFIED_SINCE_HEADER),
}


def format_http_date(moment: datetime) -> str:
    """Format a datetime as an IMF-fixdate, e.g. 'Sun, 06 Nov 1994 08:49:37 GMT'."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc).replace(microsecond=0), usegmt=True)


@dataclass
class FreshnessScheme:
    """
    One conditional-request strategy plus the token it last observed.

    The set of kinds is closed; behaviour dispatches on ``kind`` rather than
    on subclasses. Only observe() changes the token.
    """
    kind: SchemeKind
    token: Optional[str] = None

    @classmethod
    def entity_tag(cls, token: Optional[str] = None) -> "FreshnessScheme":
        return cls(SchemeKind.ENTITY_TAG, token)

    @classmethod
    def mod_time(cls, baseline: Optional[datetime] = None) -> "FreshnessScheme":
        """Build a mod-time scheme, seeded from a local file's mtime if known."""
        token = format_http_date(baseline) if baseline is not None else None
        return cls(SchemeKind.MOD_TIME, token)

    @classmethod
    def unconditional(cls) -> "FreshnessScheme":
        return cls(SchemeKind.UNCONDITIONAL)

    @property
    def is_conditional(self) -> bool:
        return self.kind in _HEADERS

    def prepare(self, request: requests.Request) -> None:
        """
        Attach the conditional header for the stored token to an outgoing request.

        A token equal to the previous cycle's is still sent; deciding that
        nothing changed is left to the server's 304 response.
        """
        if not self.is_conditional or self.token is None:
            return
        _, request_header = _HEADERS[self.kind]
        request.headers[request_header] = self.token

    def observe(self, headers: Mapping[str, str]) -> None:
        """Store the token carried by a response's headers for the next request."""
        if not self.is_conditional:
            return
        response_header, _ = _HEADERS[self.kind]
        self.token = headers.get(response_header)

    def describe(self) -> str:
        """Short human-readable form used in log lines."""
        if not self.is_conditional:
            return self.kind.value
        return f"{self.kind.value}({self.token!r})"
