"""Settings for snapp-builder.

``SnappSettings`` is the single explicit configuration value passed to the
packaging components: the resource-store root, the Info.plist short-name
rule, archive compression, and the HTTP/logging knobs used by the API and
CLI.

All fields can be overridden with ``SNAPP_``-prefixed environment variables
or a ``.env`` file::

    SNAPP_RESOURCES_DIR=/srv/snapp/resources
    SNAPP_LOG_LEVEL=DEBUG

Order of precedence (highest → lowest):
    1. Explicit keyword arguments
    2. Environment variables
    3. ``.env`` file
    4. Defaults below
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SnappSettings(BaseSettings):
    """Configuration shared by the packaging engine, API and CLI.

    Fields
    ──────
    resources_dir       : Root of the read-only resource store
    short_name_fallback : Info.plist short name used for long filenames
    short_name_limit    : Filenames shorter than this are used as short name
    compression         : Zip compression for both archives
    read_chunk_size     : Chunk size for scanning project XML and streaming output
    spool_max_size      : In-memory archive size before spilling to a temp file
    host / port         : Bind address for ``snapp serve``
    debug / log_level   : Observability
    log_json            : Force JSON (True) / console (False) logs; auto when unset
    api_prefix          : URL prefix for all API endpoints
    """

    model_config = SettingsConfigDict(
        env_prefix="SNAPP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Resource store ───────────────────────────────────────────
    resources_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "resources",
        description="Root directory of the resource store",
    )

    # ── Packaging ────────────────────────────────────────────────
    short_name_fallback: str = Field(default="Snapp!", description="Info.plist short name for long filenames")
    short_name_limit: int = Field(default=16, gt=0, description="Filename length limit for the short name")
    compression: Literal["deflated", "stored"] = Field(default="deflated", description="Zip compression")
    read_chunk_size: int = Field(default=64 * 1024, gt=0, description="Chunk size in bytes")
    spool_max_size: int = Field(
        default=32 * 1024 * 1024, ge=0, description="Archive bytes kept in memory before spilling to disk"
    )

    # ── Network ──────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 12010

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── API ──────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="snapp-builder API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @field_validator("resources_dir")
    @classmethod
    def _expand_resources_dir(cls, value: Path) -> Path:
        return value.expanduser()


@lru_cache(maxsize=1)
def get_settings() -> SnappSettings:
    """Cached settings, loaded once per process."""
    return SnappSettings()


__all__ = ["SnappSettings", "get_settings"]
