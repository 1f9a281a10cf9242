"""
Pydantic v2 settings for cache-aware graph loading.

Values are read from the environment with the ``LOADCACHED_`` prefix, so a
deployment can tune HTTP timeouts, locking, and logging without code changes.
Explicit keyword arguments to :class:`LoadCachedSettings` take precedence over
the environment.
"""

from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "LogLevel",
    "LogFormat",
    "LoadCachedSettings",
    "DEFAULT_ACCEPT",
    "get_settings",
    "reset_settings",
]

DEFAULT_ACCEPT = (
    "text/turtle, application/n-triples;q=0.9, application/rdf+xml;q=0.9, "
    "application/ld+json;q=0.8, application/n-quads;q=0.8, application/trig;q=0.8, "
    "text/n3;q=0.7, */*;q=0.1"
)


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Supported log output formats."""

    CONSOLE = "console"
    JSON = "json"


class LoadCachedSettings(BaseSettings):
    """Runtime configuration for loaders, fetchers and logging."""

    model_config = SettingsConfigDict(
        env_prefix="LOADCACHED_",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    override_cache_control: bool = Field(
        True,
        description="Treat loaded graphs as cachable indefinitely, ignoring origin directives",
    )
    eager_delete: bool = Field(
        False,
        description="Remove a graph slice before the freshness check, even when no fetch follows",
    )
    http_timeout_sec: float = Field(30.0, gt=0.0, le=600.0)
    connect_timeout_sec: float = Field(5.0, gt=0.0, le=120.0)
    follow_redirects: bool = Field(True, description="Follow HTTP redirects when fetching")
    user_agent: str = Field("LoadCached/0.1", description="User-Agent sent with every fetch")
    accept: str = Field(DEFAULT_ACCEPT, description="Accept header sent with every fetch")
    lock_dir: Optional[Path] = Field(
        None, description="Directory for cross-process lock files (in-process locks only when unset)"
    )
    lock_timeout_sec: float = Field(30.0, ge=0.0)
    log_level: LogLevel = Field(LogLevel.INFO, description="Level for the LoadCached logger")
    log_format: LogFormat = Field(LogFormat.CONSOLE, description="Pretty console or structured JSON")

    @field_validator("lock_dir", mode="before")
    @classmethod
    def expand_lock_dir(cls, value: Any) -> Any:
        """Expand user home and make absolute."""
        if value in (None, ""):
            return None
        return Path(value).expanduser().resolve()

    @field_validator("accept", "user_agent")
    @classmethod
    def non_empty_header(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("header values must not be empty")
        return value.strip()


_settings: Optional[LoadCachedSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> LoadCachedSettings:
    """Return the process-wide settings, reading the environment on first use."""
    global _settings
    with _settings_lock:
        if _settings is None:
            _settings = LoadCachedSettings()
        return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment (tests)."""
    global _settings
    with _settings_lock:
        _settings = None
