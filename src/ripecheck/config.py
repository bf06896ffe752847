"""Environment-based configuration for RipeCheck."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_preview_dir() -> str:
    return str(Path(tempfile.gettempdir()) / "ripecheck-previews")


class Settings(BaseSettings):
    """Client settings loaded from RIPECHECK_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RIPECHECK_",
        case_sensitive=False,
    )

    # Analysis service
    api_url: str = "https://banana-ripeness-backend.onrender.com/analyze"
    request_timeout: float = Field(default=60.0, gt=0)
    upload_field: str = "file"
    upload_filename: str = "banana.jpg"

    # Camera
    camera_index: int = Field(default=0, ge=0)
    facing_mode: Literal["environment", "user"] = "environment"
    fallback_width: int = Field(default=1280, ge=1)
    fallback_height: int = Field(default=720, ge=1)
    jpeg_quality: float = Field(default=0.92, gt=0, le=1)

    # Preview handles
    preview_dir: str = Field(default_factory=_default_preview_dir)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


def get_settings() -> Settings:
    """Create and return client settings."""
    return Settings()
