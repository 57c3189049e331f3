"""
Data Models Module

This module defines Pydantic models shared by the session layer and the
authentication flow:
- Session models (server-side session records)
- Authentication models (provider exchange outcome)
- Health check models
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Session Models
# ============================================================================

class SessionRecord(BaseModel):
    """
    Server-side session record referenced by the session cookie.

    The authenticated identity, if any, lives under ``data["user"]``.
    """
    session_id: str = Field(..., description="Opaque session identifier carried in the cookie")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime = Field(..., description="Instant after which the record is discarded")
    data: Dict[str, Any] = Field(default_factory=dict, description="JSON-compatible session payload")

    @classmethod
    def new(cls, session_id: str, max_age_seconds: int) -> "SessionRecord":
        now = datetime.now(timezone.utc)
        return cls(
            session_id=session_id,
            created_at=now,
            expires_at=now + timedelta(seconds=max_age_seconds),
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def touch(self, max_age_seconds: int) -> None:
        """Push the expiry forward by max_age_seconds from now."""
        self.expires_at = datetime.now(timezone.utc) + timedelta(seconds=max_age_seconds)

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.data.get("user")


# ============================================================================
# Authentication Models
# ============================================================================

class AuthResult(BaseModel):
    """Outcome of a provider callback exchange: a profile or a failure reason."""
    provider: str = Field(..., description="Provider that produced this result")
    profile: Optional[Dict[str, Any]] = Field(None, description="Normalized user profile on success")
    error: Optional[str] = Field(None, description="Failure reason (never shown to the user)")

    @classmethod
    def success(cls, provider: str, profile: Dict[str, Any]) -> "AuthResult":
        return cls(provider=provider, profile=profile)

    @classmethod
    def failure(cls, provider: str, error: str) -> "AuthResult":
        return cls(provider=provider, error=error)

    @property
    def ok(self) -> bool:
        return self.profile is not None and self.error is None


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
