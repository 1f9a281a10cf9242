"""Settings resolution and logging configuration."""

from __future__ import annotations

import io
import json
import logging

import pytest
from pydantic import ValidationError

from LoadCached.logging_config import JSONFormatter, mask_sensitive_data, setup_logging
from LoadCached.settings import LoadCachedSettings, LogFormat, get_settings, reset_settings


def test_defaults():
    settings = LoadCachedSettings()
    assert settings.override_cache_control is True
    assert settings.eager_delete is False
    assert settings.lock_dir is None
    assert "text/turtle" in settings.accept


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("LOADCACHED_OVERRIDE_CACHE_CONTROL", "false")
    monkeypatch.setenv("LOADCACHED_HTTP_TIMEOUT_SEC", "12.5")
    monkeypatch.setenv("LOADCACHED_LOCK_DIR", str(tmp_path))
    reset_settings()
    settings = get_settings()
    assert settings.override_cache_control is False
    assert settings.http_timeout_sec == 12.5
    assert settings.lock_dir == tmp_path.resolve()
    assert get_settings() is settings


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        LoadCachedSettings(http_timeout_sec=0)
    with pytest.raises(ValidationError):
        LoadCachedSettings(accept="   ")


def test_json_logging_includes_structured_fields():
    stream = io.StringIO()
    logger = setup_logging(LoadCachedSettings(log_format=LogFormat.JSON), stream=stream)
    logging.getLogger("LoadCached.loader").info(
        "graph loaded", extra={"stage": "load", "source": "http://example.org/a", "token": "s3"}
    )
    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["message"] == "graph loaded"
    assert payload["stage"] == "load"
    assert payload["source"] == "http://example.org/a"
    assert payload["token"] == "***masked***"
    assert payload["logger"] == "LoadCached.loader"
    assert len(logger.handlers) == 1


def test_setup_logging_replaces_its_handler():
    setup_logging(LoadCachedSettings())
    logger = setup_logging(LoadCachedSettings())
    assert len([h for h in logger.handlers if getattr(h, "_loadcached", False)]) == 1


def test_console_format_appends_fields():
    stream = io.StringIO()
    setup_logging(LoadCachedSettings(), stream=stream)
    logging.getLogger("LoadCached.fetcher").warning("fetch failed", extra={"status": 503})
    assert "fetch failed" in stream.getvalue()
    assert "status=503" in stream.getvalue()


def test_mask_sensitive_data():
    assert mask_sensitive_data({"Authorization": "Bearer x", "ok": 1}) == {
        "Authorization": "***masked***",
        "ok": 1,
    }
    assert isinstance(JSONFormatter().format(logging.makeLogRecord({"msg": "x"})), str)
