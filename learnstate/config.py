"""
Configuration settings for the learning-state engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are read with the ``LEARNSTATE_`` prefix, e.g.
``LEARNSTATE_RETENTION_THRESHOLD=0.75``. List-valued settings are given as JSON.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_COMPLETION_PHRASES = [
    "got it",
    "i understand",
    "i get it",
    "makes sense",
    "that's clear",
    "understood",
    "i'm done",
    "next topic",
    "let's move on",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LEARNSTATE_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///learnstate.db",
        description="SQLAlchemy URL of the mastery persistence backend",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path",
    )

    # ========================================
    # Concept Graph
    # ========================================
    concept_graph_path: str | None = Field(
        default=None,
        description="JSON file mapping concept ids to their prerequisites",
    )

    # ========================================
    # Retention Model (forgetting curve)
    # ========================================
    retention_threshold: float = Field(
        default=0.70,
        ge=0.0,
        le=1.0,
        description="Concepts whose estimated retention falls below this are due now",
    )
    medium_urgency_retention: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Interval-due concepts below this retention are medium urgency, otherwise low",
    )
    min_strength_days: float = Field(
        default=1.0,
        gt=0.0,
        description="Memory strength S (days) at mastery 0",
    )
    max_strength_days: float = Field(
        default=60.0,
        gt=0.0,
        description="Memory strength S (days) at mastery 1",
    )
    interval_bands: list[tuple[float, float]] = Field(
        default=[(0.0, 1.0), (0.4, 3.0), (0.7, 7.0), (0.9, 21.0)],
        description="(mastery lower bound, interval days) bands for the fallback schedule",
    )

    # ========================================
    # Scheduler
    # ========================================
    max_revisions: int = Field(
        default=3,
        ge=1,
        description="Maximum revision candidates surfaced in a single turn",
    )

    # ========================================
    # Turn Router
    # ========================================
    topic_window_size: int = Field(
        default=10,
        ge=1,
        description="Number of previous turn topics kept for topic-shift detection",
    )
    topic_shift_min_turns: int = Field(
        default=5,
        ge=1,
        description="Prior turns on the active concept required before topic shift may fire",
    )
    completion_phrases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_COMPLETION_PHRASES),
        description="Case-insensitive phrases that mark a quest as completed",
    )
    dispatch_timeout_seconds: float = Field(
        default=20.0,
        gt=0.0,
        description="Timeout applied to each external collaborator call",
    )

    # Mastery credited on completion
    explicit_completion_mastery: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Initial mastery after an explicitly confirmed completion",
    )
    topic_shift_completion_mastery: float = Field(
        default=0.45,
        ge=0.0,
        le=1.0,
        description="Initial mastery after a completion inferred from a topic shift",
    )
    explicit_review_gain: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Fraction of the remaining mastery gap closed by an explicit re-completion",
    )
    topic_shift_review_gain: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Fraction of the remaining mastery gap closed by a topic-shift re-completion",
    )

    # ========================================
    # Content Generator (HTTP)
    # ========================================
    content_api_url: str | None = Field(
        default=None,
        description="Base URL of the tutoring content service",
    )
    content_timeout_ms: int = Field(
        default=15000,
        description="HTTP timeout for the content service in milliseconds",
    )
    content_retry_attempts: int = Field(
        default=2,
        ge=1,
        description="Attempts made against the content service before giving up",
    )

    @field_validator("interval_bands")
    @classmethod
    def _bands_sorted(cls, value: list[tuple[float, float]]) -> list[tuple[float, float]]:
        if not value:
            raise ValueError("interval_bands must not be empty")
        return sorted(value, key=lambda band: band[0])

    # ========================================
    # Helper Methods
    # ========================================
    def get_retention_config(self) -> dict[str, Any]:
        """Get forgetting-curve configuration as a dictionary."""
        return {
            "retention_threshold": self.retention_threshold,
            "medium_urgency_retention": self.medium_urgency_retention,
            "strength_days": {
                "min": self.min_strength_days,
                "max": self.max_strength_days,
            },
            "interval_bands": list(self.interval_bands),
        }

    def get_router_config(self) -> dict[str, Any]:
        """Get turn routing configuration as a dictionary."""
        return {
            "topic_window_size": self.topic_window_size,
            "topic_shift_min_turns": self.topic_shift_min_turns,
            "completion_phrases": list(self.completion_phrases),
            "dispatch_timeout_seconds": self.dispatch_timeout_seconds,
            "max_revisions": self.max_revisions,
        }

    def has_content_api_configured(self) -> bool:
        """Check if an HTTP content generator is available."""
        return bool(self.content_api_url)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
