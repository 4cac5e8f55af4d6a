"""Application settings using Pydantic BaseSettings."""

import re

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_async_database_url(url: str | None = None) -> str:
    """Get database URL converted for asyncpg driver."""
    if url is None:
        url = settings.database_url
    # Convert postgres:// to postgresql+asyncpg:// for SQLAlchemy async
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    # asyncpg doesn't support sslmode, it uses ssl parameter
    if "sslmode=" in url:
        url = re.sub(r'[?&]sslmode=[^&]*', '', url)
        url = url.rstrip('?&')
    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Postgres
    database_url: str = "sqlite+aiosqlite:///./leadflow.db"

    # Redis (optional, enables shared handoff and rejection stores)
    redis_url: str = "redis://localhost:6379/0"
    redis_enabled: bool = False

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"
    default_locale: str = "uz"

    # Identity reconciliation
    identity_max_retries: int = 3

    # Web -> chat handoff
    handoff_ttl_seconds: int = 1800
    handoff_sweep_interval_seconds: int = 300

    # Reminders
    scheduler_enabled: bool = True
    reminder_job_minute: int = 0  # Runs hourly at this minute
    schedule_reminder_on_link: bool = True

    # Telegram (review group, onboarding channel, bot deep links)
    telegram_bot_token: str | None = None
    telegram_group_id: str | None = None
    telegram_channel_url: str | None = None
    telegram_bot_url: str | None = None
    notifier_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
