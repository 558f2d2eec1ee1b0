"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/assessments.db")

    TICK_SECONDS: float = Field(default=1.0, gt=0)
    VIOLATION_LIMIT: int = Field(default=3, ge=1)

    CAMERA_POLL_SECONDS: float = Field(default=3.0, gt=0)
    CAMERA_DARK_LUMA: float = 10.0
    CAMERA_DARK_SAMPLES: int = Field(default=3, ge=1)
    CAMERA_REACQUIRE_ATTEMPTS: int = Field(default=2, ge=1)

    TEST_LINK_BASE: str = "http://localhost:5173"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
