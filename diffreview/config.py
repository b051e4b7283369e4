"""Configuration management using pydantic-settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DIFFREVIEW_",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=7790, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # Storage Configuration
    database_path: str = Field(default="./data/diffreview.db", description="DuckDB database file")

    # Review Configuration
    default_user: str = Field(default="anonymous", description="Identity used when a request has no X-User-Id header")
    max_message_length: int = Field(default=10000, description="Maximum length of a message or resolution summary")

    # Client Cache Configuration
    list_stale_seconds: float = Field(default=60.0, description="Freshness window for conversation list queries")
    single_stale_seconds: float = Field(default=10.0, description="Freshness window for single conversation queries")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, description="Log file size before rotation")
    log_backup_count: int = Field(default=5, description="Rotated log files kept")


# Global settings instance
settings = Settings()
