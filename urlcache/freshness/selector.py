"""
Freshness scheme selection from a metadata probe.
"""
import logging
from datetime import datetime
from typing import Mapping, Optional, Protocol, runtime_checkable

from .core import (
    ETAG_HEADER,
    LAST_MODIFIED_HEADER,
    FreshnessScheme,
    SchemeKind,
)

logger = logging.getLogger("urlcache.selector")


@runtime_checkable
class MetadataSource(Protocol):
    """Anything that can report the current response headers for a URL."""

    url: str

    def probe(self) -> Mapping[str, str]:
        ...


# Checked in order; the first header present wins
SCHEME_PRECEDENCE = [
    (LAST_MODIFIED_HEADER, SchemeKind.MOD_TIME),
    (ETAG_HEADER, SchemeKind.ENTITY_TAG),
]


def kind_for_headers(headers: Mapping[str, str]) -> SchemeKind:
    """
    Determine which conditional-request mechanism a server supports.

    Args:
        headers: Response headers from a HEAD probe (case-insensitive mapping)

    Returns:
        SchemeKind to use for every later request
    """
    for header, kind in SCHEME_PRECEDENCE:
        if headers.get(header):
            return kind
    return SchemeKind.UNCONDITIONAL


def select_scheme(client: MetadataSource, baseline: Optional[datetime] = None) -> FreshnessScheme:
    """
    Probe the resource and build the matching freshness scheme.

    Args:
        client: Source of headers for the mirrored URL (normally a ResourceClient)
        baseline: Modification time of a local copy that was already accepted

    Returns:
        A new FreshnessScheme

    Raises:
        ProbeError: If the probe request fails
    """
    headers = client.probe()
    kind = kind_for_headers(headers)

    if kind == SchemeKind.MOD_TIME:
        scheme = FreshnessScheme.mod_time(baseline)
    elif kind == SchemeKind.ENTITY_TAG:
        # Entity tags are never persisted, so the first fetch is unconditional
        scheme = FreshnessScheme.entity_tag()
    else:
        scheme = FreshnessScheme.unconditional()

    logger.info(f"Selected freshness scheme for {client.url}: {scheme.describe()}")
    return scheme
