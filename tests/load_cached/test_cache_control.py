"""Cache-Control and HTTP-date parsing."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from LoadCached.cache_control import (
    CacheControlDirective,
    format_http_date,
    header_value,
    is_cachable,
    parse_cache_control,
    parse_expires,
    parse_http_date,
)


def test_parse_cache_control_reads_directives_case_insensitively():
    directive = parse_cache_control({"CACHE-CONTROL": "Public, Max-Age=600, must-revalidate"})
    assert directive.public
    assert directive.max_age == 600
    assert directive.must_revalidate
    assert not directive.no_store


def test_parse_cache_control_handles_quoted_values_and_unknown_directives():
    directive = parse_cache_control({"Cache-Control": 'max-age="120", foo=bar, s-maxage=30'})
    assert directive.max_age == 120
    assert directive.s_maxage == 30


def test_missing_header_yields_defaults():
    assert parse_cache_control({}) == CacheControlDirective()


@pytest.mark.parametrize("value", ["no-store", "no-cache", "private", "private, max-age=60"])
def test_restrictive_directives_are_not_cachable(value):
    assert not is_cachable(parse_cache_control({"Cache-Control": value}))


def test_plain_max_age_is_cachable():
    assert is_cachable(parse_cache_control({"Cache-Control": "max-age=60"}))


def test_http_date_round_trip():
    moment = datetime(2015, 10, 21, 7, 28, tzinfo=timezone.utc)
    text = format_http_date(moment)
    assert text == "Wed, 21 Oct 2015 07:28:00 GMT"
    assert parse_http_date(text) == moment


@pytest.mark.parametrize("value", [None, "", "0", "not a date"])
def test_malformed_http_dates_are_ignored(value):
    assert parse_http_date(value) is None


def test_header_value_lookup():
    assert header_value({"ETag": '"x"'}, "etag") == '"x"'
    assert header_value({}, "etag") is None


@pytest.mark.parametrize("value", ["0", "-1", "", "never"])
def test_invalid_expires_means_already_expired(value):
    assert parse_expires(value) == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_expires_is_parsed_or_absent():
    assert parse_expires(None) is None
    assert parse_expires("Wed, 21 Oct 2015 07:28:00 GMT") == datetime(
        2015, 10, 21, 7, 28, tzinfo=timezone.utc
    )
