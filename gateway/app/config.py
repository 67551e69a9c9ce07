"""
Configuration module for the CORS Forwarding Gateway.

This module uses Pydantic Settings to load and validate environment variables
for the listener and the upstream HTTP client.

Environment variables are loaded from .env file or system environment.

The origin allowlist is intentionally NOT read from the environment: it is a
fixed, compiled-in set that only changes with a new release.
"""

from functools import lru_cache
from typing import FrozenSet

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Exact-match origins allowed to use the gateway. No wildcards and no
# scheme/host normalization: "https://runbookai.net/" is NOT allowed.
ALLOWED_ORIGINS: FrozenSet[str] = frozenset({
    "http://localhost:9003",
    "https://runbookai.net",
    "https://www.runbookai.net",
})


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # =========================================================================
    # Listener Configuration
    # =========================================================================

    HOST: str = Field(
        default="0.0.0.0",
        description="Interface to bind the gateway listener",
    )

    PORT: int = Field(
        default=8082,
        description="Port to bind the gateway listener",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Upstream Client Configuration
    # =========================================================================

    UPSTREAM_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Total timeout for a single upstream request in seconds",
        gt=0,
        le=600,
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars not defined here
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def upstream_connect_timeout(self) -> float:
        """Connect phase timeout, never longer than 10 seconds."""
        return min(self.UPSTREAM_TIMEOUT_SECONDS, 10.0)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that LOG_LEVEL names a standard logging level.

        Args:
            v: Raw log level string

        Returns:
            Upper-cased log level

        Raises:
            ValueError: If the level is not recognised
        """
        level = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(
                f"Invalid LOG_LEVEL '{v}'. Must be one of: {', '.join(sorted(allowed))}"
            )
        return level


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are read once per process; call ``get_settings.cache_clear()``
    to force a reload (used by tests).

    Returns:
        Settings: Application settings
    """
    return Settings()
