"""
Configuration management for the grade engine.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Every variable is prefixed with ``GRADE_ENGINE_`` (for example
    ``GRADE_ENGINE_BATCH_MAX_WORKERS=4``).
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Grading Configuration
    # ==========================================================================
    default_pass_threshold: float = Field(
        default=60.0,
        ge=0.0,
        le=100.0,
        description="Pass percentage applied to assessments that do not set one",
    )

    score_precision: int = Field(
        default=2,
        ge=0,
        le=6,
        description="Decimal places kept on final and response percentages",
    )

    # ==========================================================================
    # Batch Processing Configuration
    # ==========================================================================
    batch_max_workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Worker threads for batch operations (1 = sequential)",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum level for emitted log events",
    )

    log_json: bool = Field(
        default=False,
        description="Render log events as JSON instead of console output",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
