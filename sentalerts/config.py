"""Application configuration settings."""
from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Environments where create_all() is tolerated instead of Alembic migrations.
CREATE_ALL_ENVS = {"dev", "local", "test"}


class Settings(BaseSettings):
    """Environment configuration for the sent-alerts service."""

    app_env: str = Field(default="dev", validation_alias=AliasChoices("APP_ENV", "SENTALERTS_ENV"))
    database_url: str = "sqlite:///sentalerts.db"
    LOG_LEVEL: str = "INFO"

    # --- Overdue alert scheduler -----------------------------------------
    SCHEDULER_ENABLED: bool = False
    OVERDUE_ALERT_INTERVAL_MINUTES: int = 60
    SCHEDULER_LOCK_TTL_SECONDS: int = 300

    ALLOW_DB_CREATE_ALL: bool = False
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = False
    # Path to alembic.ini for the /health migration check; defaults to the one beside the package.
    ALEMBIC_CONFIG: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("app_env")
    @classmethod
    def _normalise_env(cls, value: str) -> str:
        return value.strip().lower() or "dev"

    @field_validator("OVERDUE_ALERT_INTERVAL_MINUTES")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        """Reject intervals that would make APScheduler spin."""

        if value < 1:
            raise ValueError("OVERDUE_ALERT_INTERVAL_MINUTES must be at least 1")
        return value


class AppInfo(BaseModel):
    name: str = "sentalerts"
    version: str = "0.1.0"


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return settings


__all__ = [
    "CREATE_ALL_ENVS",
    "Settings",
    "AppInfo",
    "settings",
    "get_settings",
]
