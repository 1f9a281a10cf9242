"""Cache-aware loading of RDF sources into rdflib datasets.

Loads consult the provenance recorded for each (source, context) pair (ETag,
Last-Modified, max-age, Expires) and only contact the origin, and only replace
statements, when the cached copy can no longer be used.
"""

from __future__ import annotations

from .errors import (
    ConfigurationError,
    FetchError,
    LoadCachedError,
    LoadError,
    ParseError,
    StorageError,
)
from .fetcher import ConditionalFetcher, NotModified, Representation
from .freshness import build_conditional_headers, is_expired
from .loader import BatchResult, CachedLoader, LoadResult, load_cached
from .logging_config import setup_logging
from .records import Dataset, GraphRecord
from .registry import DatasetRegistry
from .settings import LoadCachedSettings, get_settings
from .storage import MetadataStore

__version__ = "0.1.0"

__all__ = [
    "BatchResult",
    "CachedLoader",
    "ConditionalFetcher",
    "ConfigurationError",
    "Dataset",
    "DatasetRegistry",
    "FetchError",
    "GraphRecord",
    "LoadCachedError",
    "LoadCachedSettings",
    "LoadError",
    "LoadResult",
    "MetadataStore",
    "NotModified",
    "ParseError",
    "Representation",
    "StorageError",
    "build_conditional_headers",
    "get_settings",
    "is_expired",
    "load_cached",
    "setup_logging",
    "__version__",
]
