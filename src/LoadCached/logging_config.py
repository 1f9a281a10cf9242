"""
Structured Logging Utilities

Loader modules log through ``logging.getLogger(__name__)`` and attach
structured fields (``stage``, ``source``, ``context``, ...) via ``extra``.
This module installs a handler on the ``LoadCached`` logger that renders those
records either as console lines or as one JSON object per line, masking
credential-like fields before they are written.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Optional, TextIO

from .settings import LoadCachedSettings, LogFormat, get_settings

__all__ = ["mask_sensitive_data", "JSONFormatter", "setup_logging", "PACKAGE_LOGGER"]

PACKAGE_LOGGER = "LoadCached"

_SENSITIVE_KEYS = {"authorization", "api_key", "apikey", "token", "secret", "password", "cookie"}

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Remove secrets from structured payloads prior to logging.

    Examples:
        >>> mask_sensitive_data({"token": "secret", "status": "ok"})
        {'token': '***masked***', 'status': 'ok'}
    """
    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        else:
            masked[key] = value
    return masked


def _extra_fields(record: logging.LogRecord) -> Dict[str, object]:
    return {key: value for key, value in vars(record).items() if key not in _RESERVED}


class JSONFormatter(logging.Formatter):
    """Formatter emitting JSON structured logs.

    Examples:
        >>> formatter = JSONFormatter()
        >>> isinstance(formatter.format(logging.makeLogRecord({'msg': 'test'})), str)
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_obj.update(_extra_fields(record))
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


class ConsoleFormatter(logging.Formatter):
    """Human readable lines with structured fields appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = mask_sensitive_data(_extra_fields(record))
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def setup_logging(
    settings: Optional[LoadCachedSettings] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the ``LoadCached`` logger from settings.

    Replaces handlers installed by a previous call, so it is safe to call
    repeatedly (for example from tests).

    Returns:
        The configured package logger.
    """
    settings = settings or get_settings()
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_loadcached", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        JSONFormatter() if settings.log_format == LogFormat.JSON else ConsoleFormatter()
    )
    handler._loadcached = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(settings.log_level.value)
    return logger
