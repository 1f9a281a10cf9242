"""Parser selection and parse failures."""

from __future__ import annotations

import pytest
from rdflib import URIRef

from LoadCached.errors import ParseError
from LoadCached.parsers import parser_for

from .helpers import TURTLE_A

EX = "http://example.org/"


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("text/turtle", "turtle"),
        ("text/turtle; charset=utf-8", "turtle"),
        ("application/rdf+xml", "xml"),
        ("application/n-triples", "nt"),
        ("application/ld+json", "json-ld"),
        ("application/n-quads", "nquads"),
        ("application/trig", "trig"),
    ],
)
def test_media_types_select_formats(content_type, expected):
    assert parser_for(content_type).format == expected


def test_generic_media_type_defers_to_extension():
    assert parser_for("text/plain", "http://example.org/data.ttl").format == "turtle"
    assert parser_for("text/plain").format == "nt"


def test_extension_fallback_ignores_query_string():
    assert parser_for(None, "http://example.org/data.rdf?version=2").format == "xml"


def test_unknown_format_raises():
    with pytest.raises(ParseError):
        parser_for("image/png", "http://example.org/picture")


def test_turtle_body_is_parsed_with_base_uri():
    triples = list(parser_for("text/turtle").parse(b"<a> <b> <c> .", "http://example.org/doc"))
    assert triples == [
        (
            URIRef("http://example.org/a"),
            URIRef("http://example.org/b"),
            URIRef("http://example.org/c"),
        )
    ]


def test_quads_are_flattened_to_triples():
    body = (
        b"<http://example.org/s> <http://example.org/p> <http://example.org/o> "
        b"<http://example.org/g1> .\n"
        b"<http://example.org/s> <http://example.org/p> <http://example.org/o2> .\n"
    )
    triples = set(parser_for("application/n-quads").parse(body, EX))
    assert triples == {
        (URIRef(EX + "s"), URIRef(EX + "p"), URIRef(EX + "o")),
        (URIRef(EX + "s"), URIRef(EX + "p"), URIRef(EX + "o2")),
    }


def test_malformed_body_raises_parse_error():
    with pytest.raises(ParseError):
        list(parser_for("text/turtle").parse(b"@prefix broken", EX))


def test_parse_yields_every_statement():
    assert len(list(parser_for("text/turtle").parse(TURTLE_A, EX))) == 2
