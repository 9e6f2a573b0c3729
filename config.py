"""
Configuration settings for the practice-analytics service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Question Bank
    # ========================================
    question_bank_dir: Path = Field(
        default=Path("data/question_banks"),
        description="Directory holding one <Class_Name>.json file per class",
    )
    question_bank_url: str | None = Field(
        default=None,
        description="Base URL serving question bank JSON (overrides question_bank_dir)",
    )
    question_bank_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout when fetching question banks",
    )

    # ========================================
    # Attempt Store
    # ========================================
    attempts_db_path: Path = Field(
        default=Path.home() / ".practice_analytics" / "attempts.db",
        description="SQLite database holding per-user question attempts",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum loguru level written to stderr",
    )

    # ========================================
    # Analytics Thresholds
    # ========================================
    weak_accuracy_threshold: float = Field(
        default=0.70,
        description="Skills strictly below this accuracy are weak",
    )
    strength_accuracy_threshold: float = Field(
        default=0.85,
        description="Skills strictly above this accuracy are strengths",
    )
    max_weak_skills: int = Field(default=3)
    max_strength_skills: int = Field(default=3)

    practice_top_weak_skills: int = Field(
        default=5,
        description="Weak skills feeding the practice set",
    )
    practice_question_limit: int = Field(default=20)
    practice_tag_priority: float = Field(
        default=0.5,
        description="Priority for questions sharing a weak skill tag",
    )
    practice_incorrect_floor: float = Field(
        default=0.2,
        description="Minimum priority for any question answered incorrectly",
    )

    fragile_min_attempted: int = Field(default=3)
    fragile_max_streak: int = Field(default=2)

    suggestion_limit: int = Field(default=5)

    struggle_expected_time_seconds: float = Field(
        default=120.0,
        description="Time on task that counts as full effort in the struggle score",
    )

    def has_remote_question_bank(self) -> bool:
        """Check if question banks are served over HTTP."""
        return bool(self.question_bank_url)

    def get_analytics_config(self) -> dict[str, Any]:
        """Get the analytics engine thresholds as a dict."""
        return {
            "weak_accuracy_threshold": self.weak_accuracy_threshold,
            "strength_accuracy_threshold": self.strength_accuracy_threshold,
            "max_weak_skills": self.max_weak_skills,
            "max_strength_skills": self.max_strength_skills,
            "practice_top_weak_skills": self.practice_top_weak_skills,
            "practice_question_limit": self.practice_question_limit,
            "practice_tag_priority": self.practice_tag_priority,
            "practice_incorrect_floor": self.practice_incorrect_floor,
            "fragile_min_attempted": self.fragile_min_attempted,
            "fragile_max_streak": self.fragile_max_streak,
            "suggestion_limit": self.suggestion_limit,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
