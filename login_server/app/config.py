"""
Configuration module for the Social Login Server.

This module uses Pydantic Settings to load and validate environment variables
for the OAuth providers (Google, Facebook), server-side session policy,
and the HTTP server itself.

Environment variables are loaded from .env file or system environment.
Provider credentials are read once at startup and never mutated afterwards.
"""

import logging
from functools import lru_cache
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_PROVIDERS = ("google", "facebook")


class ProviderConfig(BaseModel):
    """Immutable per-provider OAuth client credentials."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Provider name (google, facebook)")
    client_id: str = Field(..., min_length=1, description="OAuth client ID")
    client_secret: str = Field(..., min_length=1, description="OAuth client secret")
    callback_url: str = Field(..., min_length=1, description="Registered redirect URI")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Covers OAuth client credentials for every supported provider,
    the session cookie/expiry policy, and server binding.
    """

    # =========================================================================
    # Google OAuth 2.0
    # =========================================================================

    GOOGLE_CLIENT_ID: str = Field(
        ...,
        description="Google OAuth client ID",
        min_length=1,
    )

    GOOGLE_CLIENT_SECRET: str = Field(
        ...,
        description="Google OAuth client secret",
        min_length=1,
    )

    GOOGLE_CALLBACK_URL: str = Field(
        default="http://localhost:3000/auth/google/callback",
        description="Redirect URI registered with Google",
        min_length=1,
    )

    # =========================================================================
    # Facebook OAuth 2.0
    # =========================================================================

    FACEBOOK_CLIENT_ID: str = Field(
        ...,
        description="Facebook App ID",
        min_length=1,
    )

    FACEBOOK_CLIENT_SECRET: str = Field(
        ...,
        description="Facebook App secret",
        min_length=1,
    )

    FACEBOOK_CALLBACK_URL: str = Field(
        default="http://localhost:3000/auth/facebook/callback",
        description="Redirect URI registered with Facebook",
        min_length=1,
    )

    FACEBOOK_GRAPH_VERSION: str = Field(
        default="v21.0",
        description="Graph API version used for the dialog, token and profile endpoints",
        pattern=r"^v\d+\.\d+$",
    )

    # =========================================================================
    # Server-side Session Configuration
    # =========================================================================

    SESSION_COOKIE_NAME: str = Field(
        default="sid",
        description="Name of the cookie carrying the session identifier",
        min_length=1,
    )

    SESSION_MAX_AGE_SECONDS: int = Field(
        default=86400,
        description="Session lifetime in seconds, refreshed on every response",
        ge=60,
        le=2592000,  # Max 30 days
    )

    SESSION_COOKIE_SECURE: bool = Field(
        default=False,
        description="Only send the session cookie over HTTPS",
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    SERVER_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the server",
    )

    SERVER_PORT: int = Field(
        default=3000,
        description="Port to bind the server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that LOG_LEVEL names a standard logging level.

        Raises:
            ValueError: If the level is unknown
        """
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(
                f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL, got: {v}"
            )
        return level

    @field_validator("SESSION_COOKIE_NAME")
    @classmethod
    def validate_cookie_name(cls, v: str) -> str:
        """Cookie names may not contain separators or whitespace."""
        if any(ch in v for ch in ' ;,="\t'):
            raise ValueError(f"Invalid cookie name: '{v}'")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    def provider_configs(self) -> Dict[str, ProviderConfig]:
        """
        Build the immutable provider configuration mapping.

        Returns:
            Mapping of provider name to its ProviderConfig, in the order
            of SUPPORTED_PROVIDERS.
        """
        return {
            "google": ProviderConfig(
                name="google",
                client_id=self.GOOGLE_CLIENT_ID,
                client_secret=self.GOOGLE_CLIENT_SECRET,
                callback_url=self.GOOGLE_CALLBACK_URL,
            ),
            "facebook": ProviderConfig(
                name="facebook",
                client_id=self.FACEBOOK_CLIENT_ID,
                client_secret=self.FACEBOOK_CLIENT_SECRET,
                callback_url=self.FACEBOOK_CALLBACK_URL,
            ),
        }


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If required environment variables are missing
                        or invalid.

    Example:
        >>> from login_server.app.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.GOOGLE_CALLBACK_URL)
    """
    return Settings()
