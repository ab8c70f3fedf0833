"""Configuration loading for the Arbor test explorer.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support. Variables are prefixed with ARBOR_.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARBOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Run behaviour
    auto_run_on_build: bool = Field(
        default=False,
        description="Run the selected tests automatically after each build",
    )

    # Result enrichment
    result_workers: int = Field(
        default=8,
        description="Worker threads used to look up stored results",
    )
    result_service_url: str = Field(
        default="",
        description="Base URL of the result service (empty disables it)",
    )
    result_service_api_key: str = Field(
        default="",
        description="Bearer token for the result service",
    )
    result_service_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for result service requests in seconds",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("result_workers")
    @classmethod
    def validate_result_workers(cls, v: int) -> int:
        """Ensure the worker pool has at least one thread."""
        if v <= 0:
            raise ValueError("result_workers must be positive")
        return v

    @field_validator("result_service_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure request timeout is positive."""
        if v <= 0:
            raise ValueError("result_service_timeout_seconds must be positive")
        return v

    @field_validator("result_service_url")
    @classmethod
    def validate_service_url(cls, v: str) -> str:
        """Accept empty or http(s) URLs only."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("result_service_url must be an http(s) URL")
        return v.rstrip("/")


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
