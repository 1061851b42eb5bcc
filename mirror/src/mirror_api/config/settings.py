"""Mirror configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import ClassVar, Literal

from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class MirrorApiSettings(BaseSettings):
    """Process/runtime settings for the mirror API server."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="MIRROR_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Bind address for the mirror API.")
    port: PositiveInt = Field(default=8320, description="Port for the mirror API.")
    reload: bool = Field(default=False, description="Enable uvicorn auto-reload (dev only).")
    log_level: Literal["critical", "error", "warning", "info", "debug", "trace"] = Field(
        default="info",
        description="Log level for mirror API / uvicorn.",
    )


class MirrorSettings(BaseSettings):
    """Validated settings for storage, upstream access and ingestion."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="MIRROR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL of the registry store (defaults to a local SQLite file).",
    )
    upstream_url: str = Field(
        default="https://rubygems.org",
        description="Base URL of the upstream registry that specs are downloaded from.",
    )
    upstream_timeout_seconds: PositiveInt = Field(
        default=30,
        description="Timeout for upstream spec and checksum requests.",
    )
    ingest_lock: Literal["global", "per_gem", "none"] = Field(
        default="global",
        description="Critical section used around persistence and cache invalidation.",
    )
    ingest_workers: PositiveInt = Field(
        default=4,
        description="Worker threads used when draining a batch of spec payloads.",
    )
    silent: bool = Field(
        default=False,
        description="Suppress per-spec progress logging during ingestion.",
    )


@lru_cache()
def get_settings() -> MirrorSettings:
    """Return memoized mirror settings."""

    return MirrorSettings()


@lru_cache()
def get_api_settings() -> MirrorApiSettings:
    """Return memoized API process settings."""

    return MirrorApiSettings()
