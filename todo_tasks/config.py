"""
Configuration module for the tasks service.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables or .env file.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings for the tasks service.

    Attributes:
        SERVICE_NAME: Name used in logs and health responses
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_JSON: Render logs as JSON instead of console output
        DATABASE_URL: SQLAlchemy URL of the local task store
        REMOTE_BACKEND: Remote store implementation ("memory" or "http")
        REMOTE_BASE_URL: Base URL of the remote tasks service
        REMOTE_TIMEOUT: Timeout for remote requests in seconds
        REMOTE_CACHE_TTL_SECONDS: Lifetime of cached remote GET responses
        FAKE_REMOTE_LATENCY_MS: Simulated latency of the in-memory remote store
        RAISE_ON_WRITE_FAILURE: Surface store write failures to callers
    """

    SERVICE_NAME: str = Field(default="tasks-service")

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Render logs as JSON lines",
    )

    DATABASE_URL: str = Field(
        default="sqlite:///./tasks.db",
        description="SQLAlchemy URL of the local task store",
    )

    REMOTE_BACKEND: Literal["memory", "http"] = Field(
        default="memory",
        description="Remote task store implementation",
    )
    REMOTE_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL of the remote tasks service",
    )
    REMOTE_TIMEOUT: float = Field(
        default=10.0,
        gt=0,
        le=60.0,
        description="Timeout for remote requests in seconds",
    )
    REMOTE_CACHE_TTL_SECONDS: float = Field(
        default=5.0,
        ge=0,
        description="Lifetime of cached remote GET responses, 0 disables caching",
    )
    FAKE_REMOTE_LATENCY_MS: int = Field(
        default=0,
        ge=0,
        description="Simulated latency of the in-memory remote store",
    )

    RAISE_ON_WRITE_FAILURE: bool = Field(
        default=True,
        description="Raise StoreWriteException when a store rejects a write",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("REMOTE_BASE_URL")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """
        Validate that the remote URL is properly formatted.

        Args:
            value: The URL to validate

        Returns:
            The validated URL without trailing slash

        Raises:
            ValueError: If URL is invalid
        """
        if not value:
            raise ValueError("Remote URL cannot be empty")

        value = value.rstrip("/")

        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(
                f"Remote URL must start with http:// or https://, got: {value}"
            )

        return value


# Global settings instance
settings = Settings()
