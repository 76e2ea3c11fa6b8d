"""Application settings for mediawatch.

All runtime configuration is read once from ``MEDIAWATCH_*`` environment
variables (and an optional ``.env`` file) into :class:`MediaWatchSettings`.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** In-memory SQLite and console logs out of the box

Examples:
    >>> from mediawatch.core.settings import MediaWatchSettings
    >>> settings = MediaWatchSettings(database_url="sqlite:///blog.db")
    >>> settings.max_page_size
    1000

Tags:
    settings, configuration, pydantic, environment, mediawatch

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MediaWatchSettings(BaseSettings):
    """Settings for the mediawatch service.

    Fields
    ──────
    database_url      : SQLAlchemy URL (PostgreSQL in production)
    api_prefix        : Mount point of the content routers
    log_format        : ``json`` for log shipping, ``console`` for dev
    cache_*           : Sizing and sweep cadence of the in-process cache
    max_page_size     : Upper bound for the ``limit`` query parameter
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIAWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Network ──────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 5000

    # ── Database ─────────────────────────────────────────────────
    database_url: str = "sqlite:///:memory:"
    database_echo: bool = False

    # ── API ──────────────────────────────────────────────────────
    api_prefix: str = "/api"
    api_title: str = "MediaWatch Content API"
    debug: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"

    # ── Cache / limits ───────────────────────────────────────────
    cache_max_entries: int = Field(default=1000, ge=1)
    cache_default_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_sweep_interval_seconds: float = Field(default=60.0, gt=0)
    rate_limit_sweep_interval_seconds: float = Field(default=300.0, gt=0)
    max_page_size: int = Field(default=1000, ge=1)


@lru_cache
def get_settings() -> MediaWatchSettings:
    """Return the process-wide settings (read once from the environment)."""
    return MediaWatchSettings()


__all__ = ["MediaWatchSettings", "get_settings"]
