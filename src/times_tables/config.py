"""
Configuration settings for times-tables.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with ``TIMES_TABLES_``.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TIMES_TABLES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".times_tables",
        description="Directory for progress, backups and the server database",
    )
    progress_file: str = Field(
        default="progress.json",
        description="Local progress file name (inside data_dir)",
    )
    database_file: str = Field(
        default="server.db",
        description="SQLite database file name for the HTTP server (inside data_dir)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=3000,
        description="API server port",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )
    session_ttl_days: int = Field(
        default=30,
        description="Lifetime of a login token (days)",
    )

    # ========================================
    # Practice
    # ========================================
    default_elapsed_seconds: float = Field(
        default=5.0,
        description="Response time assumed when a client does not report one",
    )

    @property
    def progress_path(self) -> Path:
        return self.data_dir / self.progress_file

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_file


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
