# === NAVMAP v1 ===
# {
#   "module": "LoadCached.errors",
#   "purpose": "Exception hierarchy for cache-aware graph loading.",
#   "sections": [
#     {
#       "id": "loadcachederror",
#       "name": "LoadCachedError",
#       "anchor": "class-loadcachederror",
#       "kind": "class"
#     },
#     {
#       "id": "fetcherror",
#       "name": "FetchError",
#       "anchor": "class-fetcherror",
#       "kind": "class"
#     },
#     {
#       "id": "parseerror",
#       "name": "ParseError",
#       "anchor": "class-parseerror",
#       "kind": "class"
#     },
#     {
#       "id": "loaderror",
#       "name": "LoadError",
#       "anchor": "class-loaderror",
#       "kind": "class"
#     },
#     {
#       "id": "storageerror",
#       "name": "StorageError",
#       "anchor": "class-storageerror",
#       "kind": "class"
#     },
#     {
#       "id": "configurationerror",
#       "name": "ConfigurationError",
#       "anchor": "class-configurationerror",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared by the fetch, parse, storage, and load stages.

Loading a graph touches the network, an RDF parser, the statement store, and
the provenance records kept alongside it.  The failures are grouped so callers
can react to the high-level category (``LoadError`` for a single graph slice,
``StorageError`` for provenance bookkeeping) while the orchestrator still sees
the specialised ``FetchError``/``ParseError`` it converts.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "LoadCachedError",
    "FetchError",
    "ParseError",
    "LoadError",
    "StorageError",
    "ConfigurationError",
]


class LoadCachedError(RuntimeError):
    """Base exception for cache-aware loading failures."""


class FetchError(LoadCachedError):
    """Raised when a source cannot be retrieved (transport, timeout, or status)."""

    def __init__(
        self,
        message: str,
        *,
        uri: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.uri = uri
        self.status_code = status_code


class ParseError(LoadCachedError):
    """Raised when a representation is malformed or in an unsupported format."""

    def __init__(self, message: str, *, content_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.content_type = content_type


class LoadError(LoadCachedError):
    """Raised when loading one graph slice fails; wraps fetch and parse errors."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.context = context


class StorageError(LoadCachedError):
    """Raised when provenance records cannot be created, found, or saved."""


class ConfigurationError(LoadCachedError):
    """Raised when a store is bound to more than one dataset or settings are invalid."""
