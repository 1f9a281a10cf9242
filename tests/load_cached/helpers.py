"""Test doubles for the LoadCached suite.

``Origin`` is an in-memory HTTP origin served through ``httpx.MockTransport``;
it honours ``If-None-Match``/``If-Modified-Since`` and records every request so
tests can assert on what went over the wire.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

TURTLE_A = b"""@prefix ex: <http://example.org/> .
ex:a ex:p ex:b .
ex:a ex:q "alpha" .
"""
TURTLE_B = b"""@prefix ex: <http://example.org/> .
ex:c ex:p ex:d .
"""
TURTLE_X = b"""@prefix ex: <http://example.org/> .
ex:x ex:p ex:y .
"""


@dataclass
class Document:
    body: bytes
    content_type: str = "text/turtle"
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def etag(self) -> Optional[str]:
        return self.headers.get("ETag")

    @property
    def last_modified(self) -> Optional[str]:
        return self.headers.get("Last-Modified")


class Origin:
    """Minimal validating origin server."""

    def __init__(self) -> None:
        self.documents: Dict[str, Document] = {}
        self.requests: List[httpx.Request] = []
        self.delay = 0.0

    def serve(
        self,
        url: str,
        body: bytes,
        *,
        content_type: str = "text/turtle",
        status: int = 200,
        **headers: str,
    ) -> Document:
        named = {
            key.replace("_", "-").title().replace("Etag", "ETag"): value
            for key, value in headers.items()
        }
        document = Document(body=body, content_type=content_type, status=status, headers=named)
        self.documents[url] = document
        return document

    def requests_for(self, url: str) -> List[httpx.Request]:
        return [request for request in self.requests if str(request.url) == url]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            time.sleep(self.delay)
        document = self.documents.get(str(request.url))
        if document is None:
            return httpx.Response(404, content=b"not found")
        if document.status != 200:
            return httpx.Response(document.status, content=b"error")

        if_none_match = request.headers.get("If-None-Match")
        if_modified_since = request.headers.get("If-Modified-Since")
        if if_none_match is not None and document.etag is not None:
            unchanged = if_none_match == document.etag
        else:
            unchanged = (
                if_modified_since is not None
                and document.last_modified is not None
                and if_modified_since == document.last_modified
            )
        if unchanged:
            return httpx.Response(304, headers=document.headers)
        return httpx.Response(
            200,
            content=document.body,
            headers={"Content-Type": document.content_type, **document.headers},
        )


class Clock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now
