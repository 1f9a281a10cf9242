"""Dataset and graph record entities.

A :class:`Dataset` describes everything loaded into one statement store.  Each
loaded source is tracked by a :class:`GraphRecord` carrying the HTTP cache
state observed for it; records whose statements are untagged live in
``default_graphs`` and context-tagged ones in ``named_graphs``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from rdflib import BNode, URIRef

__all__ = ["Dataset", "GraphRecord", "Identifier"]

Identifier = Union[URIRef, BNode]


@dataclass(eq=False)
class GraphRecord:
    """Cached provenance for one (source, context) pair.

    Attributes:
        source: URI of the origin document.
        name: Context URI for named graphs, ``None`` for the default graph.
        identifier: Node used as the subject of the persisted facts.
        retrieved_at: Date of the representation (HTTP ``Date`` header).
        last_modified: ``Last-Modified`` validator as received.
        etag: ``ETag`` validator as received.
        max_age: ``max-age`` freshness lifetime in seconds.
        expires: Absolute expiry from the ``Expires`` header.
        cachable: False when the origin marked the response private/no-cache/no-store.
        response_time: When this record was last validated locally.
        position: Index of the record within its dataset collection.
    """

    source: URIRef
    name: Optional[URIRef] = None
    identifier: Identifier = field(default_factory=BNode)
    retrieved_at: Optional[datetime] = None
    last_modified: Optional[str] = None
    etag: Optional[str] = None
    max_age: Optional[int] = None
    expires: Optional[datetime] = None
    cachable: bool = True
    response_time: Optional[datetime] = None
    position: Optional[int] = None

    @property
    def is_named(self) -> bool:
        return self.name is not None

    @property
    def key(self) -> tuple:
        """Lookup key used for locking and registry matching."""
        return (str(self.source), str(self.name) if self.name is not None else None)


@dataclass(eq=False)
class Dataset:
    """Description of the graphs loaded into a store."""

    identifier: Identifier = field(default_factory=BNode)
    title: Optional[str] = None
    description: Optional[str] = None
    default_graphs: List[GraphRecord] = field(default_factory=list)
    named_graphs: List[GraphRecord] = field(default_factory=list)

    def records(self) -> List[GraphRecord]:
        return [*self.default_graphs, *self.named_graphs]
