# === NAVMAP v1 ===
# {
#   "module": "LoadCached.loader",
#   "purpose": "Cache-aware load orchestration for rdflib datasets.",
#   "sections": [
#     {
#       "id": "loadresult",
#       "name": "LoadResult",
#       "anchor": "class-loadresult",
#       "kind": "class"
#     },
#     {
#       "id": "batchresult",
#       "name": "BatchResult",
#       "anchor": "class-batchresult",
#       "kind": "class"
#     },
#     {
#       "id": "cachedloader",
#       "name": "CachedLoader",
#       "anchor": "class-cachedloader",
#       "kind": "class"
#     },
#     {
#       "id": "load-cached",
#       "name": "load_cached",
#       "anchor": "function-load-cached",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Cache-aware load orchestration for rdflib datasets.

Responsibilities
----------------
- Find or create the provenance record for a (source, context) pair
- Decide from stored cache state whether the origin must be contacted
- Replace the graph slice with freshly parsed statements when the body changed
- Keep the provenance record current and persisted after every load

Design Notes
------------
- A slice is only cleared when replacement statements are in hand; fetch or
  parse failures leave it untouched (``eager_delete`` restores clearing first)
- A slice with no statements is always refetched without validators
- The untagged graph is the union of every default-graph source; when one of
  them changes the others are refetched so the union stays complete
- Loads are serialised per key; all default-graph loads share one key

Usage:
    from rdflib import Dataset
    from LoadCached import CachedLoader

    store = Dataset()
    with CachedLoader(store) as loader:
        loader.load("https://example.org/vocab.ttl")
        loader.load("https://example.org/data.ttl", context="https://example.org/data")
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Tuple, Union

from rdflib import Dataset as RDFDataset
from rdflib import Graph, URIRef
from rdflib.term import Node

from .cache_control import CacheControlDirective, is_cachable
from .errors import FetchError, LoadError, ParseError, StorageError
from .fetcher import ConditionalFetcher, FetchOutcome, NotModified, Representation
from .freshness import build_conditional_headers, freshness_lifetime, is_expired
from .locks import LoadLocks, Timeout
from .parsers import parser_for
from .records import GraphRecord, Identifier
from .registry import DatasetRegistry
from .settings import LoadCachedSettings, get_settings
from .storage import MetadataStore

__all__ = ["LoadResult", "BatchResult", "CachedLoader", "load_cached"]

LOGGER = logging.getLogger(__name__)

Triple = Tuple[Node, Node, Node]
SourceSpec = Union[str, Tuple[str, Optional[str]]]

_DEFAULT_GRAPH_KEY = "urn:x-load-cached:default-graph"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading one graph slice.

    Attributes:
        source: Source URI or path that was loaded.
        context: Context URI, ``None`` for the default graph.
        status: ``fresh`` (no fetch), ``not-modified`` (304) or ``updated``.
        statements: Statements in the slice after the load.
        record: The provenance record, already persisted.
    """

    source: str
    context: Optional[str]
    status: str
    statements: int
    record: GraphRecord


@dataclass
class BatchResult:
    """Results of :meth:`CachedLoader.load_all`; failures keep the raised error."""

    results: List[LoadResult] = field(default_factory=list)
    failures: List[Tuple[str, Optional[str], Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class CachedLoader:
    """Load sources into an rdflib ``Dataset`` using HTTP cache semantics.

    Args:
        store: Statement store receiving the loaded triples.
        dataset: Identifier for the dataset description (blank node when omitted).
        dataset_graph: Graph holding provenance; defaults to a reserved context of ``store``.
        fetcher: Conditional fetcher; one is built from ``settings`` when omitted.
        settings: Loader settings; process-wide settings when omitted.
        clock: Callable returning the current aware datetime.

    Raises:
        ConfigurationError: If the metadata graph describes a different or
            more than one dataset.
    """

    def __init__(
        self,
        store: RDFDataset,
        *,
        dataset: Optional[Union[Identifier, str]] = None,
        dataset_graph: Optional[Graph] = None,
        fetcher: Optional[ConditionalFetcher] = None,
        settings: Optional[LoadCachedSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or ConditionalFetcher(settings=self.settings)
        self.metadata = MetadataStore.for_store(store, dataset_graph)
        self.registry = DatasetRegistry.get(self.metadata, dataset)
        self.clock = clock or _utcnow
        self.locks = LoadLocks(self.settings.lock_dir, self.settings.lock_timeout_sec)
        self._registry_lock = threading.Lock()

    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "CachedLoader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- public API ---

    def load(
        self,
        filename: str,
        *,
        context: Optional[str] = None,
        override_cache_control: Optional[bool] = None,
        force: bool = False,
    ) -> LoadResult:
        """Load ``filename`` into the default graph or the named graph ``context``.

        Args:
            filename: URI or local path of the source document.
            context: Context applied to the loaded triples; ``None`` loads into
                the default graph.
            override_cache_control: Cache the graph indefinitely once loaded,
                ignoring origin directives. Defaults to the settings value.
            force: Revalidate with the origin even when the record is fresh.

        Returns:
            LoadResult describing what happened.

        Raises:
            LoadError: If the source cannot be fetched or parsed, or the load
                lock cannot be acquired.
            StorageError: If the provenance record cannot be persisted.
        """
        source = str(filename)
        ctx = str(context) if context is not None else None
        override = (
            self.settings.override_cache_control
            if override_cache_control is None
            else override_cache_control
        )
        key = (source, ctx) if ctx is not None else (_DEFAULT_GRAPH_KEY, None)
        try:
            with self.locks.hold(key):
                return self._load_locked(source, ctx, override, force)
        except Timeout as exc:
            raise LoadError(
                f"Timed out waiting for the load lock on {source}", source=source, context=ctx
            ) from exc

    def load_all(
        self,
        sources: Iterable[SourceSpec],
        *,
        context: Optional[str] = None,
        override_cache_control: Optional[bool] = None,
        force: bool = False,
    ) -> BatchResult:
        """Load several sources, continuing past per-source failures.

        Each entry is a source string, loaded into ``context`` (the default graph
        when ``None``), or a ``(source, context)`` pair naming its own context.
        """
        batch = BatchResult()
        for spec in sources:
            source, ctx = (spec, context) if isinstance(spec, str) else spec
            try:
                batch.results.append(
                    self.load(
                        source,
                        context=ctx,
                        override_cache_control=override_cache_control,
                        force=force,
                    )
                )
            except (LoadError, StorageError) as exc:
                LOGGER.warning(
                    "graph load failed",
                    extra={"stage": "load", "source": source, "context": ctx, "error": str(exc)},
                )
                batch.failures.append((source, ctx, exc))
        return batch

    # --- orchestration ---

    def _load_locked(
        self, source: str, ctx: Optional[str], override: bool, force: bool
    ) -> LoadResult:
        with self._registry_lock:
            record = self.registry.find_or_create(source, ctx)
        now = self.clock()

        if self.settings.eager_delete:
            self._slice(ctx).remove((None, None, None))
            empty = False
        else:
            empty = len(self._slice(ctx)) == 0

        needs_fetch = force or empty or is_expired(record, now)
        if needs_fetch and override and record.retrieved_at is not None and not (force or empty):
            needs_fetch = False

        LOGGER.debug(
            "freshness decision",
            extra={
                "stage": "load",
                "source": source,
                "context": ctx,
                "fetch": needs_fetch,
                "empty": empty,
                "override": override,
                "lifetime_s": freshness_lifetime(record, now),
            },
        )

        status = "fresh"
        if needs_fetch:
            headers = {} if empty else build_conditional_headers(record)
            outcome = self._fetch(record, headers)
            if isinstance(outcome, NotModified):
                self._freshen(record, outcome, now, override)
                status = "not-modified"
            else:
                statements = self._parse(record, outcome)
                if ctx is None:
                    statements.extend(self._reload_default_members(record, now, override))
                self._replace(ctx, statements)
                self._apply(record, outcome, now, override)
                status = "updated"

        record.response_time = now
        self.metadata.save(record)

        count = len(self._slice(ctx))
        LOGGER.info(
            "graph loaded",
            extra={
                "stage": "load",
                "source": source,
                "context": ctx,
                "status": status,
                "statements": count,
            },
        )
        return LoadResult(source=source, context=ctx, status=status, statements=count, record=record)

    def _slice(self, ctx: Optional[str]) -> Graph:
        if ctx is None:
            return self.store.default_context
        return self.store.graph(URIRef(ctx))

    def _replace(self, ctx: Optional[str], statements: List[Triple]) -> None:
        target = self._slice(ctx)
        target.remove((None, None, None))
        self.store.addN((s, p, o, target) for s, p, o in statements)

    def _fetch(self, record: GraphRecord, headers) -> FetchOutcome:
        try:
            return self.fetcher.fetch(str(record.source), headers)
        except FetchError as exc:
            LOGGER.warning(
                "fetch failed",
                extra={
                    "stage": "fetch",
                    "source": str(record.source),
                    "context": record.name,
                    "status": exc.status_code,
                    "error": str(exc),
                },
            )
            raise LoadError(
                f"Could not fetch {record.source}: {exc}",
                source=str(record.source),
                context=str(record.name) if record.name is not None else None,
            ) from exc

    def _parse(self, record: GraphRecord, outcome: Representation) -> List[Triple]:
        source = str(record.source)
        try:
            return list(parser_for(outcome.content_type, source).parse(outcome.body, source))
        except ParseError as exc:
            raise LoadError(
                f"Could not parse {source}: {exc}",
                source=source,
                context=str(record.name) if record.name is not None else None,
            ) from exc

    def _reload_default_members(
        self, changed: GraphRecord, now: datetime, override: bool
    ) -> List[Triple]:
        """Refetch every other default-graph source so the union survives replacement.

        Members never retrieved successfully hold no statements and are skipped.
        """
        members = [
            r
            for r in self.registry.dataset.default_graphs
            if r is not changed and r.retrieved_at is not None
        ]
        statements: List[Triple] = []
        refreshed = []
        for member in members:
            outcome = self._fetch(member, {})
            if isinstance(outcome, NotModified):
                raise LoadError(
                    f"Unconditional fetch of {member.source} returned 304",
                    source=str(member.source),
                )
            statements.extend(self._parse(member, outcome))
            refreshed.append((member, outcome))
        for member, outcome in refreshed:
            self._apply(member, outcome, now, override)
            member.response_time = now
            self.metadata.save(member)
        if members:
            LOGGER.info(
                "default graph members reloaded",
                extra={"stage": "load", "source": str(changed.source), "members": len(members)},
            )
        return statements

    @staticmethod
    def _apply(
        record: GraphRecord, outcome: Representation, now: datetime, override: bool
    ) -> None:
        directive = outcome.cache_control
        record.retrieved_at = outcome.http_date or now
        record.last_modified = outcome.last_modified
        record.etag = outcome.etag
        record.max_age = directive.max_age
        record.expires = outcome.expires
        record.cachable = True if override else is_cachable(directive)

    @staticmethod
    def _freshen(record: GraphRecord, outcome: NotModified, now: datetime, override: bool) -> None:
        record.retrieved_at = outcome.http_date or now
        record.etag = outcome.etag or record.etag
        record.last_modified = outcome.last_modified or record.last_modified
        record.expires = outcome.expires or record.expires
        directive = outcome.cache_control
        if directive != CacheControlDirective():
            record.max_age = directive.max_age
            record.cachable = True if override else is_cachable(directive)


def load_cached(
    store: RDFDataset,
    filename: str,
    *,
    context: Optional[str] = None,
    dataset: Optional[Union[Identifier, str]] = None,
    override_cache_control: Optional[bool] = None,
    dataset_graph: Optional[Graph] = None,
    fetcher: Optional[ConditionalFetcher] = None,
    settings: Optional[LoadCachedSettings] = None,
) -> LoadResult:
    """Load ``filename`` into ``store`` in one call.

    Convenience wrapper building a :class:`CachedLoader` for a single load; use
    the class directly to load several sources with one HTTP client.
    """
    with CachedLoader(
        store,
        dataset=dataset,
        dataset_graph=dataset_graph,
        fetcher=fetcher,
        settings=settings,
    ) as loader:
        return loader.load(filename, context=context, override_cache_control=override_cache_control)
