"""Configuration management for the confined storage service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"critical", "error", "warning", "info", "debug"}


class Settings(BaseSettings):
    """Centralised runtime configuration, read from ``FILE_STORAGE_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="FILE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    # Storage
    base_dir: str = Field(
        default="uploads",
        description="Root directory for stored files; relative values resolve against the working directory.",
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    log_level: str = Field(default="info")

    @field_validator("base_dir", mode="before")
    @classmethod
    def _normalise_base_dir(cls, value: object) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("base_dir must not be blank")
        return text

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
