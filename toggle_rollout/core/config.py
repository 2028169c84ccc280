"""
Library Configuration Module.

This module uses Pydantic Settings to manage configuration from environment variables.
All settings are validated on first access, failing fast on invalid values.

Usage:
    from toggle_rollout.core.config import settings
    print(settings.APP_ENV)
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "staging", "production", "testing"]


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Attributes:
        APP_NAME: Name used in log records.
        APP_ENV: Current deployment environment. Toggles configured for a
            different environment always evaluate to disabled.
        DEBUG: Enable debug logging (never True in production).
        LOG_LEVEL: Explicit log level, overrides the DEBUG-derived default.
        ANALYTICS_DEFAULT_ERROR_RATE: Error rate reported by analytics
            summaries when no error count is supplied.
        MAX_DEPENDENCY_DEPTH: Longest dependency chain the evaluator follows.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    APP_NAME: str = "toggle-rollout"
    APP_ENV: Environment = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None

    # -------------------------------------------------------------------------
    # Evaluation Settings
    # -------------------------------------------------------------------------
    MAX_DEPENDENCY_DEPTH: int = Field(default=10, ge=1, le=100)

    # -------------------------------------------------------------------------
    # Analytics Settings
    # -------------------------------------------------------------------------
    ANALYTICS_DEFAULT_ERROR_RATE: float = Field(default=0.01, ge=0.0, le=1.0)

    def __init__(self, **kwargs) -> None:
        """Initialize settings and validate environment-specific rules."""
        super().__init__(**kwargs)

        if self.APP_ENV == "production" and self.DEBUG:
            raise ValueError("DEBUG must be False in production environment")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings.

    Uses lru_cache so settings are only loaded once per process.

    Example:
        >>> get_settings().APP_ENV
        'development'
    """
    return Settings()


# Convenience export for direct import
settings = get_settings()
