"""
Configuration settings for the docgate conversion gateway.

This module handles environment variables, application settings,
and configuration validation using Pydantic Settings.
"""

import tempfile
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden using environment variables
    with the same name (case-insensitive).
    """

    # Application settings
    APP_NAME: str = "docgate document conversion gateway"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )
    DEBUG: bool = False

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS settings
    ALLOWED_ORIGINS: list[str] = ["*"]

    # Logging settings
    LOG_LEVEL: str = "INFO"

    # Upload and scratch settings
    MAX_FILE_SIZE: int = 50 * 1024 * 1024  # 50 MiB
    TEMP_DIR: str = str(Path(tempfile.gettempdir()) / "docgate")

    # External tools settings
    WKHTMLTOPDF_PATH: str = "wkhtmltopdf"
    UNRTF_PATH: str = "unrtf"
    TOOL_TIMEOUT: int = 300  # 5 minutes

    # Remote fetch settings
    FETCH_TIMEOUT: float = 60.0

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment setting."""
        allowed_envs = ["development", "test", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level setting."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("MAX_FILE_SIZE")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        """Validate maximum file size."""
        if v <= 0:
            raise ValueError("MAX_FILE_SIZE must be positive")
        return v

    @field_validator("TOOL_TIMEOUT")
    @classmethod
    def validate_tool_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("TOOL_TIMEOUT must be positive")
        return v

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Create settings instance
settings = Settings()


def get_settings() -> Settings:
    """
    Get application settings.

    Returns:
        Settings: Application settings instance
    """
    return settings


# Example production .env:
#   ENVIRONMENT=production
#   LOG_LEVEL=WARNING
#   WKHTMLTOPDF_PATH=/usr/bin/wkhtmltopdf
#   UNRTF_PATH=/usr/bin/unrtf
#   ALLOWED_ORIGINS=["https://your-domain.com"]
