"""Persistence of datasets and graph records as vocabulary-tagged triples.

Responsibilities
----------------
- Write :class:`~LoadCached.records.Dataset` and
  :class:`~LoadCached.records.GraphRecord` instances into an rdflib graph
- Rebuild them from the graph on later runs
- Report any failure of the underlying store as ``StorageError``

Design Notes
------------
- The attribute/predicate mapping is the fixed table in :mod:`LoadCached.vocabulary`
- ``save`` replaces every fact about a subject, so it is idempotent
- When metadata shares the statement store it lives in a reserved context,
  keeping it clear of default-graph replacement
"""

from __future__ import annotations

import contextlib
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, List, Optional

from rdflib import RDF, Graph, Literal, URIRef
from rdflib import Dataset as RDFDataset
from rdflib.term import Node

from .errors import StorageError
from .records import Dataset, GraphRecord, Identifier
from .vocabulary import DATASET_FIELDS, METADATA_CONTEXT, RECORD_FIELDS, SD, FieldTerm

__all__ = ["MetadataStore"]

LOGGER = logging.getLogger(__name__)


def _encode(term: FieldTerm, value: Any) -> Node:
    if term.kind == "uri":
        return URIRef(str(value))
    if term.kind == "datetime":
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return Literal(value)
    if term.kind == "integer":
        return Literal(int(value))
    if term.kind == "boolean":
        return Literal(bool(value))
    return Literal(str(value))


def _decode(term: FieldTerm, node: Node) -> Any:
    if term.kind == "uri":
        return URIRef(str(node))
    if not isinstance(node, Literal):
        raise StorageError(f"Expected a literal for {term.predicate}, found {node!r}")
    value = node.toPython()
    if term.kind == "datetime":
        if not isinstance(value, datetime):
            raise StorageError(f"Invalid timestamp for {term.predicate}: {node!r}")
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if term.kind == "integer":
        return int(value)
    if term.kind == "boolean":
        return value if isinstance(value, bool) else str(value).lower() == "true"
    return str(value)


class MetadataStore:
    """Create, find and save provenance facts in ``graph``."""

    def __init__(self, graph: Graph) -> None:
        self.graph = graph

    @classmethod
    def for_store(cls, store: RDFDataset, dataset_graph: Optional[Graph] = None) -> "MetadataStore":
        """Bind to ``dataset_graph``, or to the reserved metadata context of ``store``."""
        if dataset_graph is not None:
            return cls(dataset_graph)
        return cls(store.graph(METADATA_CONTEXT))

    @contextlib.contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except StorageError:
            raise
        except Exception as exc:  # store backends raise backend-specific errors
            LOGGER.error(
                "metadata store failure",
                extra={"stage": "storage", "operation": operation, "error": str(exc)},
            )
            raise StorageError(f"Metadata {operation} failed: {exc}") from exc

    # --- datasets ---

    def find_datasets(self) -> List[Identifier]:
        with self._guard("find"):
            return list(self.graph.subjects(RDF.type, SD.Dataset, unique=True))

    def create_dataset(self, dataset: Dataset) -> Dataset:
        with self._guard("create"):
            self.graph.add((dataset.identifier, RDF.type, SD.Dataset))
            self._write_dataset(dataset)
        return dataset

    def save_dataset(self, dataset: Dataset) -> Dataset:
        with self._guard("save"):
            for term in DATASET_FIELDS:
                self.graph.remove((dataset.identifier, term.predicate, None))
            self._write_dataset(dataset)
        return dataset

    def load_dataset(self, identifier: Identifier) -> Dataset:
        with self._guard("load"):
            dataset = Dataset(identifier=identifier)
            for term in DATASET_FIELDS:
                node = self.graph.value(identifier, term.predicate)
                if node is not None:
                    setattr(dataset, term.attribute, _decode(term, node))
            dataset.default_graphs = self._read_collection(identifier, SD.defaultGraph)
            dataset.named_graphs = self._read_collection(identifier, SD.namedGraph)
        return dataset

    def _read_collection(self, identifier: Identifier, predicate: URIRef) -> List[GraphRecord]:
        records = [self._read_record(node) for node in self.graph.objects(identifier, predicate)]
        # Unpositioned records sort last, by identifier, so the order is stable.
        return sorted(
            records,
            key=lambda r: (r.position is None, r.position or 0, str(r.identifier)),
        )

    def link(self, dataset: Dataset, record: GraphRecord) -> None:
        """Attach ``record`` to the dataset collection matching its context."""
        predicate = SD.namedGraph if record.is_named else SD.defaultGraph
        with self._guard("save"):
            self.graph.add((dataset.identifier, predicate, record.identifier))

    def _write_dataset(self, dataset: Dataset) -> None:
        for term in DATASET_FIELDS:
            value = getattr(dataset, term.attribute)
            if value is not None:
                self.graph.add((dataset.identifier, term.predicate, _encode(term, value)))

    # --- graph records ---

    def create(self, record: GraphRecord) -> GraphRecord:
        with self._guard("create"):
            if (record.identifier, RDF.type, SD.Graph) in self.graph:
                raise StorageError(f"Graph record {record.identifier} already exists")
            self._write_record(record)
        LOGGER.debug(
            "graph record created",
            extra={"stage": "storage", "source": str(record.source), "context": record.name},
        )
        return record

    def save(self, record: GraphRecord) -> GraphRecord:
        with self._guard("save"):
            self.graph.remove((record.identifier, None, None))
            self._write_record(record)
        return record

    def records(self) -> List[GraphRecord]:
        with self._guard("find"):
            return [
                self._read_record(node)
                for node in self.graph.subjects(RDF.type, SD.Graph, unique=True)
            ]

    def find(self, predicate: Callable[[GraphRecord], bool]) -> Optional[GraphRecord]:
        """Return the first persisted record satisfying ``predicate``."""
        for record in self.records():
            if predicate(record):
                return record
        return None

    def _write_record(self, record: GraphRecord) -> None:
        self.graph.add((record.identifier, RDF.type, SD.Graph))
        for term in RECORD_FIELDS:
            value = getattr(record, term.attribute)
            if value is not None:
                self.graph.add((record.identifier, term.predicate, _encode(term, value)))

    def _read_record(self, node: Node) -> GraphRecord:
        values = {}
        for term in RECORD_FIELDS:
            found = self.graph.value(node, term.predicate)
            if found is not None:
                values[term.attribute] = _decode(term, found)
        if "source" not in values:
            raise StorageError(f"Graph record {node} has no source")
        return GraphRecord(identifier=node, **values)
