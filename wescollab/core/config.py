"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Production usually injects via env vars only
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_supabase_settings() -> "SupabaseSettings":
    return SupabaseSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="json for machine-friendly output, plain for local reading",
    )
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (default logs/app.log)",
    )
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class SupabaseSettings(BaseSettings):
    """Hosted backend (Supabase/PostgREST) connection settings.

    Only required when APP_STORE_BACKEND=supabase; validation of that
    requirement happens in the adapter factories.
    """

    url: str | None = Field(
        None,
        description="Project URL, e.g. https://xyzcompany.supabase.co",
    )
    anon_key: str | None = Field(
        None,
        description="Public anon key, used to resolve user sessions",
    )
    service_role_key: str | None = Field(
        None,
        description="Service role key, used for server-side table access",
    )
    timeout_seconds: float = Field(10.0, description="HTTP timeout in seconds")
    posts_table: str = Field("posts", description="Table holding postings")
    profiles_table: str = Field(
        "profiles",
        description="Table holding author profiles (joined into post reads)",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    store_backend: Literal["memory", "supabase"] = Field(
        "memory",
        description="Where posts and sessions live: in-process memory or Supabase",
    )
    allowed_email_domain: str = Field(
        "wesleyan.edu",
        description="Only users whose email ends with @<domain> may sign in",
    )
    posts_per_window: int = Field(
        10,
        description="Maximum posts a user may create per rate limit window",
        ge=1,
    )
    rate_limit_window: Literal["rolling_24h", "calendar_day_utc"] = Field(
        "rolling_24h",
        description="rolling_24h looks back 24 hours; calendar_day_utc counts since UTC midnight",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    default_page_size: int = Field(20, description="Posts per page when not specified", ge=1)
    max_page_size: int = Field(50, description="Upper bound for the limit query parameter", ge=1)

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development, in-memory store by default
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    supabase: SupabaseSettings = Field(default_factory=_build_supabase_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
