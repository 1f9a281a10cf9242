# === NAVMAP v1 ===
# {
#   "module": "LoadCached.cache_control",
#   "purpose": "Cache-Control, Expires and HTTP-date header interpretation.",
#   "sections": [
#     {
#       "id": "cachecontroldirective",
#       "name": "CacheControlDirective",
#       "anchor": "class-cachecontroldirective",
#       "kind": "class"
#     },
#     {
#       "id": "parse-cache-control",
#       "name": "parse_cache_control",
#       "anchor": "function-parse-cache-control",
#       "kind": "function"
#     },
#     {
#       "id": "is-cachable",
#       "name": "is_cachable",
#       "anchor": "function-is-cachable",
#       "kind": "function"
#     },
#     {
#       "id": "parse-http-date",
#       "name": "parse_http_date",
#       "anchor": "function-parse-http-date",
#       "kind": "function"
#     },
#     {
#       "id": "parse-expires",
#       "name": "parse_expires",
#       "anchor": "function-parse-expires",
#       "kind": "function"
#     },
#     {
#       "id": "format-http-date",
#       "name": "format_http_date",
#       "anchor": "function-format-http-date",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Cache-Control, Expires and HTTP-date header interpretation.

Responsibilities
----------------
- Parse the ``Cache-Control`` header into structured directives
- Decide whether a response may be cached by a private cache
- Convert HTTP dates to timezone-aware UTC datetimes and back

Design Notes
------------
- Frozen dataclasses keep parsed directives immutable
- Unknown directives are ignored; malformed values are logged at DEBUG
- An ``Expires`` value that is not a valid date means "already expired"
- ``s-maxage`` is parsed but not used, records describe a private cache
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional

__all__ = [
    "CacheControlDirective",
    "header_value",
    "parse_cache_control",
    "is_cachable",
    "parse_http_date",
    "parse_expires",
    "format_http_date",
]

LOGGER = logging.getLogger(__name__)

# directive-name=value or directive-name, value optionally quoted
_DIRECTIVE_PATTERN = re.compile(r'([a-zA-Z\-]+)(?:=(["\']?)(\d+|[^,\s"\']+)\2)?')


@dataclass(frozen=True)
class CacheControlDirective:
    """Immutable representation of parsed cache-control directives.

    Attributes:
        no_cache: Must revalidate with origin before reuse
        no_store: Must not be stored at all
        public: Response may be cached by any cache
        private: Response is intended for a single user
        max_age: Freshness lifetime in seconds
        s_maxage: Shared-cache freshness lifetime
        must_revalidate: Stale responses must not be reused
        immutable: Origin promises the body will not change
    """

    no_cache: bool = False
    no_store: bool = False
    public: bool = False
    private: bool = False
    max_age: Optional[int] = None
    s_maxage: Optional[int] = None
    must_revalidate: bool = False
    immutable: bool = False


def header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Return a header value using case-insensitive lookup."""
    target = name.lower()
    for key, value in headers.items():
        if key.lower() == target:
            return value
    return None


def parse_cache_control(headers: Mapping[str, str]) -> CacheControlDirective:
    """Parse the Cache-Control header into structured directives.

    Args:
        headers: HTTP headers (case-insensitive key access)

    Returns:
        CacheControlDirective with parsed values

    Examples:
        >>> directive = parse_cache_control({"cache-control": "max-age=3600, public"})
        >>> directive.max_age
        3600
        >>> directive.public
        True
    """
    cc_header = header_value(headers, "cache-control")
    if not cc_header:
        return CacheControlDirective()

    kwargs: dict = {}
    for match in _DIRECTIVE_PATTERN.finditer(cc_header):
        directive_name = match.group(1).lower()
        value_str = match.group(3) if match.group(3) else None

        if directive_name == "no-cache":
            kwargs["no_cache"] = True
        elif directive_name == "no-store":
            kwargs["no_store"] = True
        elif directive_name == "public":
            kwargs["public"] = True
        elif directive_name == "private":
            kwargs["private"] = True
        elif directive_name == "must-revalidate":
            kwargs["must_revalidate"] = True
        elif directive_name == "immutable":
            kwargs["immutable"] = True
        elif directive_name in ("max-age", "s-maxage"):
            field_name = "max_age" if directive_name == "max-age" else "s_maxage"
            try:
                kwargs[field_name] = int(value_str) if value_str else 0
            except (ValueError, TypeError):
                LOGGER.debug("Invalid %s value: %s", directive_name, value_str)

    return CacheControlDirective(**kwargs)


def is_cachable(directive: CacheControlDirective) -> bool:
    """Return False when the response is private, no-cache, or no-store.

    Examples:
        >>> is_cachable(CacheControlDirective(no_store=True))
        False
        >>> is_cachable(CacheControlDirective(max_age=60))
        True
    """
    return not (directive.private or directive.no_cache or directive.no_store)


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 7231 HTTP-date into an aware UTC datetime.

    Malformed values (including the ``Expires: 0`` idiom) yield ``None``.

    Examples:
        >>> parse_http_date("Wed, 21 Oct 2015 07:28:00 GMT").isoformat()
        '2015-10-21T07:28:00+00:00'
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError) as exc:
        LOGGER.debug("Failed to parse HTTP date %r: %s", value, exc)
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# Stored for Expires values that are present but not a valid HTTP-date.
EXPIRED = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_expires(value: Optional[str]) -> Optional[datetime]:
    """Interpret an ``Expires`` header; ``None`` when the header is absent.

    Invalid dates such as ``Expires: 0`` represent a time in the past.

    Examples:
        >>> parse_expires("0")
        datetime.datetime(1970, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
        >>> parse_expires(None) is None
        True
    """
    if value is None:
        return None
    return parse_http_date(value) or EXPIRED


def format_http_date(moment: datetime) -> str:
    """Format an aware datetime as an HTTP-date (``GMT`` suffix)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)
