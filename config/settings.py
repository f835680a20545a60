"""
Module: settings

Purpose: Centralized configuration management for vizpipe.

Key Functions:
- get_settings: Load settings from environment variables
- Settings: Pydantic settings model with validation

Architecture Notes:
- Uses pydantic-settings for type-safe configuration
- All settings have sensible defaults
- Environment variables (VIZPIPE_*) override defaults
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration shared by the loader, renderer and CLI."""

    model_config = SettingsConfigDict(
        env_prefix="VIZPIPE_",
        env_file=".env",
        extra="ignore",
    )

    data_dir: Path = Path("data")
    output_dir: Path = Path("output")

    # Drawing surface
    default_width: int = Field(default=960, gt=0)
    default_height: int = Field(default=600, gt=0)

    # Loader
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    # Realtime polling
    poll_interval_seconds: int = Field(default=1, ge=1)
    poll_window_size: int = Field(default=10, ge=1)

    # Renderer
    transition_duration_ms: int = Field(default=750, ge=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
