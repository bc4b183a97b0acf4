"""
Core configuration module for agentloop.

This module provides centralized configuration management using Pydantic
Settings. All configuration is loaded from environment variables with the
AGENTLOOP_ prefix. The Gemini API key is also read from GEMINI_API_KEY.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Runtime settings loaded from environment variables.

    Example: AGENTLOOP_MAX_STEPS=25
    """

    # =========================================================================
    # General
    # =========================================================================
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for structured logging",
    )

    # =========================================================================
    # Model Gateway
    # =========================================================================
    default_model: str = Field(
        default="gemini-1.5-flash",
        description="Model used when an agent does not name one",
    )
    gemini_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("AGENTLOOP_GEMINI_API_KEY", "GEMINI_API_KEY"),
        description="Google Generative Language API key",
    )
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language REST API",
    )
    gateway_timeout_seconds: float = Field(
        default=120.0,
        ge=1.0,
        le=600.0,
        description="HTTP timeout for a single gateway call",
    )
    gateway_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for transient gateway failures",
    )
    gateway_retry_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial backoff delay between gateway attempts",
    )

    # =========================================================================
    # Agent Loop
    # =========================================================================
    max_steps: int = Field(
        default=20,
        ge=0,
        description="Maximum tool-executing round trips per run",
    )
    tool_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Timeout for a single tool invocation",
    )
    verbose: bool = Field(
        default=True,
        description="Log each tool call at info level",
    )

    model_config = {
        "env_prefix": "AGENTLOOP_",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the log level."""
        level = v.upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return level


@lru_cache
def get_settings() -> Settings:
    """
    Get the settings singleton.

    Uses functools.lru_cache so only one Settings instance is created.

    Returns:
        Settings: The runtime settings instance.
    """
    return Settings()
