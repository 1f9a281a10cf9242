"""Vocabulary terms used to describe datasets and cached graph records.

Records are persisted with SPARQL 1.1 Service Description terms for the
dataset structure, Dublin Core terms for provenance, and a small ``cache``
namespace for HTTP cache-control state.  ``RECORD_FIELDS`` and
``DATASET_FIELDS`` are the fixed attribute-to-predicate mapping used by
:mod:`LoadCached.storage`.
"""

from __future__ import annotations

from dataclasses import dataclass

from rdflib import Namespace, URIRef
from rdflib.namespace import DCTERMS

__all__ = [
    "SD",
    "DCTERMS",
    "CACHE",
    "METADATA_CONTEXT",
    "FieldTerm",
    "RECORD_FIELDS",
    "DATASET_FIELDS",
]

SD = Namespace("http://www.w3.org/ns/sparql-service-description#")
CACHE = Namespace("http://purl.org/load-cached/cache#")

# Context holding provenance when metadata shares the statement store.
METADATA_CONTEXT = URIRef("urn:x-load-cached:metadata")


@dataclass(frozen=True)
class FieldTerm:
    """Binding between a record attribute and the predicate that stores it.

    Attributes:
        attribute: Attribute name on the record dataclass.
        predicate: RDF predicate used for the persisted fact.
        kind: Value encoding: ``uri``, ``text``, ``datetime``, ``integer`` or ``boolean``.
    """

    attribute: str
    predicate: URIRef
    kind: str


RECORD_FIELDS = (
    FieldTerm("source", DCTERMS.source, "uri"),
    FieldTerm("name", SD.name, "uri"),
    FieldTerm("retrieved_at", DCTERMS.date, "datetime"),
    FieldTerm("last_modified", DCTERMS.modified, "text"),
    FieldTerm("etag", CACHE.etag, "text"),
    FieldTerm("max_age", CACHE.maxAge, "integer"),
    FieldTerm("expires", CACHE.expires, "datetime"),
    FieldTerm("cachable", CACHE.cachable, "boolean"),
    FieldTerm("response_time", CACHE.responseTime, "datetime"),
    FieldTerm("position", CACHE.position, "integer"),
)

DATASET_FIELDS = (
    FieldTerm("title", DCTERMS.title, "text"),
    FieldTerm("description", DCTERMS.description, "text"),
)
