"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    ROUTES_PATH: str = Field(default="app_config.json")

    SESSION_TTL_SECONDS: int = Field(default=3600, ge=1)
    MAX_ROOT_RESETS: int = Field(default=3, ge=1)
    SUMMARY_EVERY_N_TURNS: int = Field(default=5, ge=1)
    TOP_BUZZWORDS: int = Field(default=50, ge=1)
    CONTEXT_SNIPPET_CHARS: int = Field(default=100, ge=1)

    ANALYSIS_TIMEOUT_S: float = Field(default=8.0, gt=0.0)
    BACKGROUND_QUEUE_SIZE: int = Field(default=256, ge=1)
    BACKGROUND_MAX_RETRIES: int = Field(default=1, ge=0)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
