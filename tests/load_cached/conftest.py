"""Shared fixtures for the LoadCached test suite."""

from __future__ import annotations

import os

import httpx
import pytest

from LoadCached.fetcher import ConditionalFetcher
from LoadCached.settings import LoadCachedSettings, reset_settings

from .helpers import Clock, Origin


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep LOADCACHED_* variables from the host out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("LOADCACHED_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def origin() -> Origin:
    return Origin()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def settings() -> LoadCachedSettings:
    return LoadCachedSettings(override_cache_control=False)


@pytest.fixture
def fetcher(origin: Origin, settings: LoadCachedSettings):
    client = httpx.Client(transport=httpx.MockTransport(origin.handler))
    with ConditionalFetcher(client=client, settings=settings) as instance:
        yield instance
    client.close()
