"""Conditional retrieval of graph sources over HTTP or from the local disk.

Responsibilities
----------------
- Issue GET requests carrying stored validators and classify the outcome
- Surface transport failures, timeouts, and unexpected statuses as ``FetchError``
- Serve ``file:`` URIs and plain paths with validators derived from file metadata

Design Notes
------------
- One ``httpx.Client`` per fetcher, created lazily from settings unless injected
- 304 responses still carry cache headers; they are returned for freshening
- Bodies are read fully; parsing happens after the fetch succeeds

Usage:
    from LoadCached.fetcher import ConditionalFetcher

    with ConditionalFetcher() as fetcher:
        outcome = fetcher.fetch("https://example.org/data.ttl", {"If-None-Match": '"abc"'})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx

from .cache_control import (
    CacheControlDirective,
    format_http_date,
    header_value,
    parse_cache_control,
    parse_expires,
    parse_http_date,
)
from .errors import FetchError
from .settings import LoadCachedSettings, get_settings

__all__ = [
    "NotModified",
    "Representation",
    "FetchOutcome",
    "ConditionalFetcher",
    "is_local_source",
]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotModified:
    """Origin confirmed the cached representation (HTTP 304).

    Attributes:
        http_date: ``Date`` of the 304 response, if sent.
        last_modified: Refreshed ``Last-Modified`` validator, if sent.
        etag: Refreshed ``ETag`` validator, if sent.
        cache_control: Parsed ``Cache-Control`` directives.
        expires: Parsed ``Expires`` header.
    """

    http_date: Optional[datetime] = None
    last_modified: Optional[str] = None
    etag: Optional[str] = None
    cache_control: CacheControlDirective = CacheControlDirective()
    expires: Optional[datetime] = None


@dataclass(frozen=True)
class Representation:
    """A new body for the source together with its cache metadata."""

    body: bytes
    content_type: Optional[str] = None
    http_date: Optional[datetime] = None
    last_modified: Optional[str] = None
    etag: Optional[str] = None
    cache_control: CacheControlDirective = CacheControlDirective()
    expires: Optional[datetime] = None


FetchOutcome = Union[NotModified, Representation]


def _cache_metadata(headers: Mapping[str, str]) -> Dict[str, object]:
    return {
        "http_date": parse_http_date(header_value(headers, "date")),
        "last_modified": header_value(headers, "last-modified"),
        "etag": header_value(headers, "etag"),
        "cache_control": parse_cache_control(headers),
        "expires": parse_expires(header_value(headers, "expires")),
    }


def is_local_source(uri: str) -> bool:
    """Return True for ``file:`` URIs, bare paths, and Windows drive paths."""
    scheme = urlparse(uri).scheme
    return scheme in ("", "file") or len(scheme) == 1


def _local_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(url2pathname(parsed.path))
    return Path(uri)


class ConditionalFetcher:
    """Fetch graph sources honouring ``If-None-Match``/``If-Modified-Since``.

    Args:
        client: Optional pre-built ``httpx.Client`` (for example with a mock transport).
        settings: Settings supplying timeouts and request headers.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        settings: Optional[LoadCachedSettings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=httpx.Timeout(
                    self.settings.http_timeout_sec,
                    connect=self.settings.connect_timeout_sec,
                ),
                follow_redirects=self.settings.follow_redirects,
                headers={"User-Agent": self.settings.user_agent},
            )
            LOGGER.debug(
                "HTTP client created",
                extra={"stage": "fetch", "timeout": self.settings.http_timeout_sec},
            )
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ConditionalFetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def fetch(self, uri: str, conditional_headers: Mapping[str, str]) -> FetchOutcome:
        """Retrieve ``uri`` conditionally.

        Args:
            uri: Source URI or local path.
            conditional_headers: Output of :func:`LoadCached.freshness.build_conditional_headers`.

        Returns:
            :class:`NotModified` or :class:`Representation`.

        Raises:
            FetchError: On network failure, timeout, missing file, or a status
                other than 2xx/304.
        """
        if is_local_source(uri):
            return self._fetch_file(uri, conditional_headers)
        return self._fetch_http(uri, conditional_headers)

    def _fetch_http(self, uri: str, conditional_headers: Mapping[str, str]) -> FetchOutcome:
        headers = {"Accept": self.settings.accept, **conditional_headers}
        try:
            response = self.client.get(uri, headers=headers)
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timed out fetching {uri}: {exc}", uri=uri) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to fetch {uri}: {exc}", uri=uri) from exc

        LOGGER.debug(
            "fetch response",
            extra={
                "stage": "fetch",
                "source": uri,
                "status": response.status_code,
                "conditional": bool(conditional_headers),
            },
        )
        if response.status_code == 304:
            return NotModified(**_cache_metadata(response.headers))
        if not response.is_success:
            raise FetchError(
                f"Unexpected HTTP status {response.status_code} for {uri}",
                uri=uri,
                status_code=response.status_code,
            )
        return Representation(
            body=response.content,
            content_type=response.headers.get("content-type"),
            **_cache_metadata(response.headers),
        )

    def _fetch_file(self, uri: str, conditional_headers: Mapping[str, str]) -> FetchOutcome:
        path = _local_path(uri)
        try:
            stat = path.stat()
        except OSError as exc:
            raise FetchError(f"Cannot read {path}: {exc}", uri=uri) from exc

        modified = datetime.fromtimestamp(int(stat.st_mtime), tz=timezone.utc)
        last_modified = format_http_date(modified)
        etag = f'"{stat.st_size:x}-{stat.st_mtime_ns:x}"'

        if_none_match = header_value(conditional_headers, "if-none-match")
        since = parse_http_date(header_value(conditional_headers, "if-modified-since"))
        unchanged = (
            if_none_match == etag
            if if_none_match is not None
            else since is not None and modified <= since
        )
        if unchanged:
            return NotModified(last_modified=last_modified, etag=etag)

        try:
            body = path.read_bytes()
        except OSError as exc:
            raise FetchError(f"Cannot read {path}: {exc}", uri=uri) from exc
        return Representation(body=body, last_modified=last_modified, etag=etag)
