"""
Conditional-request strategies and the probe that picks one.
"""
from .core import (
    ETAG_HEADER,
    IF_MODIFIED_SINCE_HEADER,
    IF_NONE_MATCH_HEADER,
    LAST_MODIFIED_HEADER,
    FreshnessScheme,
    SchemeKind,
    format_http_date,
)
from .selector import SCHEME_PRECEDENCE, MetadataSource, kind_for_headers, select_scheme

__all__ = [
    # Core types
    "FreshnessScheme",
    "SchemeKind",
    "format_http_date",
    # Header names
    "ETAG_HEADER",
    "IF_MODIFIED_SINCE_HEADER",
    "IF_NONE_MATCH_HEADER",
    "LAST_MODIFIED_HEADER",
    # Selection
    "MetadataSource",
    "SCHEME_PRECEDENCE",
    "kind_for_headers",
    "select_scheme",
]
