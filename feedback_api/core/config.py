"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

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

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build(settings_cls: type[BaseSettings]) -> BaseSettings:
    """Build a nested settings object from environment.

    Pydantic Settings (v2) populates values from environment variables, but
    static type checkers treat required fields as constructor arguments.
    """

    return settings_cls()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """Summarization provider configuration."""

    provider: str = Field(
        "openai",
        description="LLM provider name (e.g., openai)",
    )
    model: str = Field(
        "gpt-4o-mini",
        description="Model name used for response summaries",
    )
    api_key: str | None = Field(
        None,
        description="API key for cloud providers (required for OpenAI)",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint for OpenAI-compatible servers",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        1024,
        description="Upper bound on completion tokens per summary",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    allowed_origins: str = Field(
        "http://localhost:3000,http://localhost:3001",
        description="Comma-separated list of origins allowed by CORS",
    )
    min_question_chars: int = Field(10, ge=1)
    max_question_chars: int = Field(500, ge=1)
    max_response_chars: int = Field(2000, ge=1)
    min_summary_responses: int = Field(
        3,
        description="Minimum number of stored responses before a summary can be requested",
        ge=1,
    )
    summary_cache_ttl_seconds: int = Field(
        3600,
        description="How long a generated summary is reused for identical inputs",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Either 'json' or 'plain'")
    output: str = Field("stdout", description="Either 'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate log file after this size (0 disables)")
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field("X-Request-ID", description="Header carrying the correlation id")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class CounterStoreSettings(BaseSettings):
    """Shared counter store used by rate limiting and usage accounting."""

    backend: str = Field(
        "memory",
        description="Counter store backend: 'memory' (single process) or 'redis'",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL when backend=redis",
    )
    socket_timeout_seconds: float = Field(
        2.0,
        description="Socket timeout for counter store calls",
    )

    model_config = SettingsConfigDict(
        env_prefix="COUNTER_STORE_",
        case_sensitive=False,
    )


class RecordStoreSettings(BaseSettings):
    """Persistence service holding questions and responses."""

    backend: str = Field(
        "memory",
        description="Record store backend: 'memory' or 'postgrest'",
    )
    url: str | None = Field(
        None,
        description="Base URL of the PostgREST/Supabase project",
    )
    api_key: str | None = Field(
        None,
        description="Service key sent as apikey/Authorization headers",
    )
    timeout_seconds: float = Field(10.0)

    model_config = SettingsConfigDict(
        env_prefix="RECORD_STORE_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Admission limits per scope.

    Question creation and summary generation run in single-key mode (only the
    per-minute maximum is enforced). Response submission checks both the
    per-IP and the per-question policies.
    """

    enabled: bool = Field(True, description="Master switch for all rate limit checks")
    fail_open: bool = Field(
        True,
        description="Admit requests when the counter store is unavailable",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    window_seconds: int = Field(60, description="Short window length in seconds", ge=1)
    state_ttl_seconds: int = Field(24 * 60 * 60, description="Retention of stored window state", ge=1)

    question_per_minute: int = Field(3, ge=1)
    question_per_hour: int = Field(5, ge=1)
    question_per_day: int = Field(10, ge=1)

    summary_per_minute: int = Field(30, ge=1)
    summary_window_seconds: int = Field(60, ge=1)
    summary_message: str = Field("Too many summary requests, please try again later")

    response_ip_per_minute: int = Field(5, ge=1)
    response_ip_per_hour: int = Field(20, ge=1)
    response_ip_per_day: int = Field(50, ge=1)

    response_question_per_minute: int = Field(100, ge=1)
    response_question_per_hour: int = Field(300, ge=1)
    response_question_per_day: int = Field(1000, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class UsageSettings(BaseSettings):
    """Usage accounting retention."""

    retention_days: int = Field(90, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="USAGE_",
        case_sensitive=False,
    )


class ContentFilterSettings(BaseSettings):
    """Bounds for the in-process duplicate detector."""

    max_fingerprints_per_bucket: int = Field(100, ge=1)
    max_buckets: int = Field(10000, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_FILTER_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=lambda: _build(LLMSettings))
    app: AppSettings = Field(default_factory=lambda: _build(AppSettings))
    log: LogSettings = Field(default_factory=lambda: _build(LogSettings))
    counter_store: CounterStoreSettings = Field(default_factory=lambda: _build(CounterStoreSettings))
    record_store: RecordStoreSettings = Field(default_factory=lambda: _build(RecordStoreSettings))
    rate_limit: RateLimitSettings = Field(default_factory=lambda: _build(RateLimitSettings))
    usage: UsageSettings = Field(default_factory=lambda: _build(UsageSettings))
    content_filter: ContentFilterSettings = Field(default_factory=lambda: _build(ContentFilterSettings))

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
