"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Keys shorter than this cannot be real Gemini API keys
MIN_API_KEY_LENGTH = 10

# Left behind when a build step fails to substitute the secret
PLACEHOLDER_TOKENS = ("process.env", "${")

CredentialStatus = Literal["configured", "missing"]


class Settings(BaseSettings):
    """Application settings."""

    # Gemini (API key supplied at deploy time)
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "api_key", "google_api_key"),
    )
    gemini_model: str = "gemini-3-flash-preview"
    gemini_temperature: float = 1.0
    gemini_timeout_seconds: int = 120
    gemini_rate_limit_rpm: int = 60

    # Document rendering
    render_scale: float = Field(default=3.0, ge=2.0)
    jpeg_quality: int = Field(default=80, ge=1, le=100)

    # "abort" stops the run on the first extraction error,
    # "degrade" records transient unit failures and continues
    failure_policy: Literal["abort", "degrade"] = "abort"

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_debug: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def credential_status(self) -> CredentialStatus:
        """Whether a plausible API key is configured."""
        return credential_status(self.gemini_api_key)


def credential_status(api_key: str | None) -> CredentialStatus:
    """
    Check the shape of an API key without calling the service.

    Args:
        api_key: Raw credential string

    Returns:
        "missing" for empty, too short, or unresolved placeholder values
    """
    key = (api_key or "").strip()
    if len(key) < MIN_API_KEY_LENGTH:
        return "missing"
    if any(token in key for token in PLACEHOLDER_TOKENS):
        return "missing"
    return "configured"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
