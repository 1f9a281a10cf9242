"""Format detection and parsing of retrieved representations with rdflib.

The loader hands over a body and its ``Content-Type``; this module picks the
matching rdflib parser (falling back to the source's file extension) and turns
the body into a stream of triples.  Quad formats are flattened because the
loader applies its own context to every statement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from rdflib import Dataset as RDFDataset
from rdflib import Graph
from rdflib.term import Node
from rdflib.util import guess_format

from .errors import ParseError

__all__ = ["MEDIA_TYPE_FORMATS", "QUAD_FORMATS", "RDFParser", "parser_for"]

LOGGER = logging.getLogger(__name__)

Triple = Tuple[Node, Node, Node]

MEDIA_TYPE_FORMATS: Dict[str, str] = {
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "application/rdf+xml": "xml",
    "application/xml": "xml",
    "text/xml": "xml",
    "application/n-triples": "nt",
    "text/plain": "nt",
    "text/n3": "n3",
    "text/rdf+n3": "n3",
    "application/ld+json": "json-ld",
    "application/json": "json-ld",
    "application/n-quads": "nquads",
    "application/trig": "trig",
    "application/trix": "trix",
}

QUAD_FORMATS = frozenset({"nquads", "trig", "trix"})

# Sent by servers for many RDF syntaxes; the extension is the better hint.
GENERIC_MEDIA_TYPES = frozenset(
    {"text/plain", "application/octet-stream", "application/xml", "text/xml", "application/json"}
)


@dataclass(frozen=True)
class RDFParser:
    """Parser bound to one rdflib format name."""

    format: str

    def parse(self, body: bytes, base_uri: str) -> Iterator[Triple]:
        """Parse ``body`` and yield its triples.

        Raises:
            ParseError: If rdflib rejects the document.
        """
        target = RDFDataset() if self.format in QUAD_FORMATS else Graph()
        try:
            target.parse(data=body, format=self.format, publicID=base_uri)
        except Exception as exc:  # rdflib parsers raise format-specific exception types
            raise ParseError(
                f"Failed to parse {base_uri} as {self.format}: {exc}", content_type=self.format
            ) from exc

        if isinstance(target, RDFDataset):
            for s, p, o, _ in target.quads((None, None, None, None)):
                yield s, p, o
        else:
            yield from target


def _media_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


def parser_for(content_type: Optional[str], uri: Optional[str] = None) -> RDFParser:
    """Select a parser from a media type, falling back to the URI extension.

    Examples:
        >>> parser_for("text/turtle; charset=utf-8").format
        'turtle'
        >>> parser_for(None, "http://example.org/data.nt").format
        'nt'
    """
    media_type = _media_type(content_type)
    fmt = None
    if media_type and media_type not in GENERIC_MEDIA_TYPES:
        fmt = MEDIA_TYPE_FORMATS.get(media_type)
    if fmt is None and uri:
        fmt = guess_format(uri.split("?", 1)[0].split("#", 1)[0])
        if fmt is not None:
            LOGGER.debug(
                "format guessed from extension",
                extra={"stage": "parse", "source": uri, "format": fmt, "content_type": media_type},
            )
    if fmt is None and media_type:
        fmt = MEDIA_TYPE_FORMATS.get(media_type)
    if fmt is None:
        raise ParseError(
            f"No RDF parser for content type {content_type!r} ({uri})",
            content_type=content_type,
        )
    return RDFParser(fmt)
