"""
Configuration management for Michishirube.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .db.base import DEFAULT_DB_PATH, database_url_for_path, get_database_url

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
LOG_FORMATS = ("console", "json")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Database
    database_url: Optional[str] = Field(default=None)
    db_path: str = Field(default=DEFAULT_DB_PATH)

    # API
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    debug: bool = Field(default=False)

    # Logging
    log_level: str = Field(default="info")
    log_format: str = Field(default="console")

    @field_validator("db_path", mode="before")
    @classmethod
    def _default_db_path(cls, value: Optional[str]) -> str:
        return value or DEFAULT_DB_PATH

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Optional[str]) -> str:
        # Unknown levels fall back to info instead of failing startup.
        level = (value or "").strip().lower()
        if level == "warn":
            level = "warning"
        return level if level in LOG_LEVELS else "info"

    @field_validator("log_format", mode="before")
    @classmethod
    def _normalize_log_format(cls, value: Optional[str]) -> str:
        fmt = (value or "").strip().lower()
        return fmt if fmt in LOG_FORMATS else "console"

    def resolved_database_url(self) -> str:
        """DATABASE_URL when set, otherwise a SQLite URL for ``db_path``."""
        return get_database_url(self.database_url or database_url_for_path(self.db_path))


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
