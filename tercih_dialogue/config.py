# tercih_dialogue/config.py
"""
Settings

Environment-driven configuration for the dialogue engine and the thin
HTTP layer around it. Values can also come from a local `.env` file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    All knobs are read as `settings.X` by the modules that need them.
    """

    APP_NAME: str = "tercih-dialogue"
    LOG_LEVEL: str = "INFO"

    # Conversation context store
    CONTEXT_MAX_ENTRIES: int = Field(default=10, ge=1)
    CONTEXT_EXPIRY_MINUTES: int = Field(default=30, ge=1)
    CONTEXT_SWEEP_INTERVAL_SECONDS: int = Field(default=60, ge=1)

    # Repetition / confusion detection
    REPEAT_WINDOW: int = Field(default=3, ge=1)
    CONFUSION_WINDOW: int = Field(default=5, ge=1)
    CONFUSION_THRESHOLD: int = Field(default=2, ge=1)

    # Suggestions
    SUGGESTION_LIMIT: int = Field(default=4, ge=1)

    # Alias extractor fuzzy fallback
    FUZZY_THRESHOLD: float = Field(default=0.85, ge=0.0, le=1.0)

    # Outbound turn events for the persistence collaborator
    TURN_EVENTS_WEBHOOK_URL: Optional[str] = None

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
