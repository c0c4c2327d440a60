"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Settings are grouped by concern, each group reading its own env prefix
(APP_, LOG_, GOOGLE_, STORAGE_, CACHE_, SYNC_).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENV = os.getenv("APP_ENV", "development")

# Resolve .env files from the repository root, not the working directory.
PROJECT_ROOT = Path(__file__).resolve().parents[2]

KNOWN_ENVIRONMENTS = ("development", "testing", "staging", "production")


def env_file_for(app_env: str) -> Path | None:
    """Return the .env.<app_env> file if it exists (deployed envs inject variables directly)."""
    name = app_env if app_env in KNOWN_ENVIRONMENTS else "development"
    path = PROJECT_ROOT / f".env.{name}"
    return path if path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
_env_file = env_file_for(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_google_settings() -> "GooglePlacesSettings":
    return GooglePlacesSettings()


def _build_storage_settings() -> "StorageSettings":
    return StorageSettings()


def _build_cache_settings() -> "CacheSettings":
    return CacheSettings()


def _build_sync_settings() -> "SyncSettings":
    return SyncSettings()


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client sliding-window rate limiting on API routes",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers on limited routes",
    )
    rate_limit_cleanup_interval_seconds: int = Field(
        300,
        description="Minimum interval between global sweeps of idle rate limit keys",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate the log file at this size (0 disables rotation)")
    backup_count: int = Field(3, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class GooglePlacesSettings(BaseSettings):
    """Google Places (legacy web service) configuration.

    The key is billable and must only ever be used server-side.
    """

    api_key: str | None = Field(
        None,
        description="Google Maps Platform key with the Places API enabled",
    )
    base_url: str = Field(
        "https://maps.googleapis.com/maps/api/place",
        description="Places web service base URL",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Per-request timeout in seconds",
    )
    photo_max_width: int = Field(
        400,
        description="Max width requested when resolving place photos",
        ge=1,
        le=1600,
    )

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_",
        case_sensitive=False,
    )


class StorageSettings(BaseSettings):
    """Storage backend configuration (venue records, cache entries, blobs)."""

    backend: str = Field(
        "memory",
        description="Storage backend: memory (local/dev) or supabase",
    )
    supabase_url: str | None = Field(
        None,
        description="Supabase project URL (https://<ref>.supabase.co)",
    )
    supabase_service_role_key: str | None = Field(
        None,
        description="Service role key; bypasses row level security, keep server-side",
    )
    photo_bucket: str = Field(
        "venue-photos",
        description="Public storage bucket that holds cached venue photos",
    )
    venues_table: str = Field("venues", description="Venue records table")
    cache_table: str = Field("api_cache", description="Persistent cache tier table")
    upsert_function: str = Field(
        "upsert_venue_from_google",
        description="RPC performing the idempotent venue upsert keyed by place_id",
    )
    timeout_seconds: float = Field(10.0, description="Per-request timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Read-through cache configuration."""

    max_entries: int | None = Field(
        1024,
        description="Fast tier capacity (LRU eviction); unset for unbounded",
    )
    persistent_prefix: str = Field(
        "sb_cache_",
        description="Namespace prepended to keys in the persistent tier",
    )
    nearby_ttl_seconds: int = Field(300, description="TTL for nearby search responses", ge=1)
    details_ttl_seconds: int = Field(3600, description="TTL for place details responses", ge=1)

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class SyncSettings(BaseSettings):
    """POI sync pass configuration (pacing and search region)."""

    photo_delay_seconds: float = Field(0.35, description="Pause after each photo cache call", ge=0)
    page_delay_seconds: float = Field(
        2.0,
        description="Pause before requesting a next page (Google needs time to activate the token)",
        ge=0,
    )
    search_delay_seconds: float = Field(1.2, description="Pause between search configurations", ge=0)
    max_pages: int = Field(3, description="Max result pages per search configuration", ge=1)
    center_lat: float = Field(20.2114, description="Search center latitude")
    center_lng: float = Field(-87.4654, description="Search center longitude")
    radius_meters: int = Field(10000, description="Search radius in meters", ge=1, le=50000)

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    google: GooglePlacesSettings = Field(default_factory=_build_google_settings)
    storage: StorageSettings = Field(default_factory=_build_storage_settings)
    cache: CacheSettings = Field(default_factory=_build_cache_settings)
    sync: SyncSettings = Field(default_factory=_build_sync_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
