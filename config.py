"""
Configuration settings for the focus-gate service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.challenges import ChallengeType

CHALLENGE_TYPE_NAMES = tuple(t.value for t in ChallengeType)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///./focus_gate.db",
        description="SQLAlchemy connection string (PostgreSQL in production)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default="logs/focus_gate.log",
        description="Log file path (None for stdout only)",
    )

    # ========================================
    # API Server
    # ========================================
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8100,
        description="API server port",
    )

    # ========================================
    # Challenge Defaults
    # Applied to users that have no challenge_settings row.
    # ========================================
    challenge_enabled_default: bool = Field(
        default=True,
        description="Whether challenges are enabled for users without settings",
    )
    challenge_allowed_types: str = Field(
        default="math,memory,typing",
        description="Comma-separated challenge types offered by default",
    )
    challenge_difficulty: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Default challenge difficulty (1-5)",
    )
    unlock_duration_minutes: int = Field(
        default=15,
        ge=5,
        le=60,
        description="Minutes of access granted by a successful challenge",
    )
    max_unlocks_per_session: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Successful or spent unlocks allowed per focus session",
    )
    cooldown_minutes: int = Field(
        default=5,
        ge=0,
        le=30,
        description="Wait after a failed challenge before another may be issued",
    )

    # ========================================
    # Progression
    # ========================================
    progression_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to decide calendar days for streaks",
    )

    @field_validator("challenge_allowed_types")
    @classmethod
    def _check_allowed_types(cls, value: str) -> str:
        names = [t.strip() for t in value.split(",") if t.strip()]
        unknown = [t for t in names if t not in CHALLENGE_TYPE_NAMES]
        if unknown:
            raise ValueError(f"Unknown challenge types: {', '.join(unknown)}")
        if not names:
            raise ValueError("At least one challenge type must be allowed")
        return ",".join(names)

    def get_allowed_types(self) -> list[str]:
        """Default allowed challenge types as a list."""
        return [t.strip() for t in self.challenge_allowed_types.split(",") if t.strip()]

    def get_challenge_defaults(self) -> dict[str, object]:
        """Get the default challenge settings as a dictionary."""
        return {
            "enabled": self.challenge_enabled_default,
            "allowed_types": self.get_allowed_types(),
            "difficulty": self.challenge_difficulty,
            "unlock_duration": self.unlock_duration_minutes,
            "max_unlocks_per_session": self.max_unlocks_per_session,
            "cooldown_minutes": self.cooldown_minutes,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
