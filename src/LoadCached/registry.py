"""Dataset registry mapping (source, context) pairs to graph records.

The registry owns the single :class:`~LoadCached.records.Dataset` describing a
store.  It is obtained explicitly with :meth:`DatasetRegistry.get` and held by
the loader; there is no ambient lookup.
"""

from __future__ import annotations

import logging
from typing import Optional

from rdflib import BNode, URIRef

from .errors import ConfigurationError
from .records import Dataset, GraphRecord, Identifier
from .storage import MetadataStore

__all__ = ["DatasetRegistry"]

LOGGER = logging.getLogger(__name__)


class DatasetRegistry:
    """Find-or-create access to the graph records of one dataset."""

    def __init__(self, dataset: Dataset, metadata: MetadataStore) -> None:
        self.dataset = dataset
        self.metadata = metadata

    @classmethod
    def get(
        cls,
        metadata: MetadataStore,
        dataset: Optional[Identifier] = None,
    ) -> "DatasetRegistry":
        """Return the registry for the dataset described in ``metadata``.

        Args:
            metadata: Store holding provenance facts.
            dataset: Identifier to use when the dataset is created; when a
                dataset already exists it must match.

        Raises:
            ConfigurationError: If more than one dataset is described, or the
                existing one differs from ``dataset``.
            StorageError: If the metadata store cannot be read or written.
        """
        if dataset is not None and not isinstance(dataset, (URIRef, BNode)):
            dataset = URIRef(str(dataset))
        existing = metadata.find_datasets()
        if len(existing) > 1:
            raise ConfigurationError(
                f"A store may hold one dataset description, found {len(existing)}"
            )
        if existing:
            found = existing[0]
            if dataset is not None and found != dataset:
                raise ConfigurationError(
                    f"Store is already associated with dataset {found}, not {dataset}"
                )
            return cls(metadata.load_dataset(found), metadata)

        created = Dataset() if dataset is None else Dataset(identifier=dataset)
        metadata.create_dataset(created)
        LOGGER.info(
            "dataset created",
            extra={"stage": "registry", "dataset": str(created.identifier)},
        )
        return cls(created, metadata)

    def find(self, source: str, context: Optional[str]) -> Optional[GraphRecord]:
        """Return the record loaded from ``source`` into ``context`` (None = default graph)."""
        source_ref = URIRef(str(source))
        if context is None:
            for record in self.dataset.default_graphs:
                if record.source == source_ref:
                    return record
            return None
        context_ref = URIRef(str(context))
        for record in self.dataset.named_graphs:
            if record.source == source_ref and record.name == context_ref:
                return record
        return None

    def new_record(self, source: str, context: Optional[str]) -> GraphRecord:
        """Allocate, persist, and register a record for ``(source, context)``."""
        collection = (
            self.dataset.default_graphs if context is None else self.dataset.named_graphs
        )
        record = GraphRecord(
            source=URIRef(str(source)),
            name=URIRef(str(context)) if context is not None else None,
            position=len(collection),
        )
        self.metadata.create(record)
        self.metadata.link(self.dataset, record)
        collection.append(record)
        return record

    def find_or_create(self, source: str, context: Optional[str]) -> GraphRecord:
        return self.find(source, context) or self.new_record(source, context)

    def describe(self, title: Optional[str] = None, description: Optional[str] = None) -> Dataset:
        """Set the dataset's title and description and persist them."""
        if title is not None:
            self.dataset.title = title
        if description is not None:
            self.dataset.description = description
        return self.metadata.save_dataset(self.dataset)
