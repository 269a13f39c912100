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

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    rate_limit_enabled: bool = Field(
        True,
        description="Enforce per-IP and per-email rate limits on form submissions",
    )
    notifications_enabled: bool = Field(
        True,
        description="Dispatch an outbound notification after each persisted submission",
    )
    notification_timeout_seconds: float = Field(
        5.0,
        description="Upper bound on how long a submission waits for its notification",
        gt=0,
    )
    trust_proxy_headers: bool = Field(
        True,
        description="Resolve the caller IP from CF-Connecting-IP / X-Real-IP / X-Forwarded-For",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class TelegramSettings(BaseSettings):
    """Outbound notification transport (Telegram Bot API).

    Both bot_token and chat_id are optional: when either is missing the
    notifier reports a soft failure instead of raising.
    """

    bot_token: str | None = Field(
        None,
        description="Telegram bot token used to authenticate sendMessage calls",
    )
    chat_id: str | None = Field(
        None,
        description="Chat (or channel) id that receives submission notifications",
    )
    api_base_url: str = Field(
        "https://api.telegram.org",
        description="Telegram Bot API base URL",
    )
    timeout_seconds: float = Field(
        5.0,
        description="HTTP timeout for a single sendMessage call",
    )
    parse_mode: str = Field(
        "Markdown",
        description="Telegram parse mode applied to message text",
    )

    model_config = SettingsConfigDict(
        env_prefix="TELEGRAM_",
        case_sensitive=False,
    )


class StorageSettings(BaseSettings):
    """Persistence backend configuration."""

    backend: str = Field(
        "memory",
        description="Persistence backend name (memory, supabase)",
    )
    supabase_url: str | None = Field(
        None,
        description="Supabase project URL (required for the supabase backend)",
    )
    supabase_service_key: str | None = Field(
        None,
        description="Supabase service-role key (required for the supabase backend)",
    )
    timeout_seconds: float = Field(
        10.0,
        description="HTTP timeout for persistence calls",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int | None = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (None disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
