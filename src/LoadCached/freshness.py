"""Freshness decisions for cached graph records.

Responsibilities
----------------
- Decide whether a record must be revalidated with its origin
- Build ``If-None-Match``/``If-Modified-Since`` headers from stored validators
- Report the remaining freshness lifetime for logging

Design Notes
------------
- Pure functions: callers supply ``now`` so decisions are reproducible
- A record never retrieved, or marked non-cachable, is always expired
- ``Expires`` and ``max-age`` are both honoured; whichever elapses first wins
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Optional

from .records import GraphRecord

__all__ = ["is_expired", "build_conditional_headers", "freshness_lifetime"]


def is_expired(record: GraphRecord, now: datetime) -> bool:
    """Return True when ``record`` may not be reused without contacting the origin.

    Args:
        record: Graph record holding the last observed cache state.
        now: Current time as an aware datetime.

    Returns:
        ``True`` if a fetch is required, ``False`` if the cached statements are fresh.

    Examples:
        >>> from rdflib import URIRef
        >>> is_expired(GraphRecord(source=URIRef("http://example.org/g")), datetime.now())
        True
    """
    if record.retrieved_at is None:
        return True
    if not record.cachable:
        return True
    if record.expires is not None and now >= record.expires:
        return True
    if record.max_age is not None and now >= record.retrieved_at + timedelta(
        seconds=record.max_age
    ):
        return True
    return False


def build_conditional_headers(record: GraphRecord) -> Dict[str, str]:
    """Generate conditional request headers from the record's validators.

    Examples:
        >>> from rdflib import URIRef
        >>> build_conditional_headers(GraphRecord(source=URIRef("http://x"), etag='"abc"'))
        {'If-None-Match': '"abc"'}
    """
    headers: Dict[str, str] = {}
    if record.etag:
        headers["If-None-Match"] = record.etag
    if record.last_modified:
        headers["If-Modified-Since"] = record.last_modified
    return headers


def freshness_lifetime(record: GraphRecord, now: datetime) -> Optional[float]:
    """Seconds until the record expires, ``None`` when no expiry applies."""
    if record.retrieved_at is None:
        return 0.0
    deadlines = []
    if record.expires is not None:
        deadlines.append(record.expires)
    if record.max_age is not None:
        deadlines.append(record.retrieved_at + timedelta(seconds=record.max_age))
    if not deadlines:
        return None
    return max((min(deadlines) - now).total_seconds(), 0.0)
