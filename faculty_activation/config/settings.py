"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Activation Service
    activation_api_base_url: str = "http://localhost:8000/api"
    request_timeout_seconds: float = 10.0

    # Flow rules
    otp_length: int = 6
    min_password_length: int = 6

    # Screen backend
    max_flows: int = 1000  # In-memory flows kept before the oldest is dropped


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
