"""
Shared fixtures for the login server tests.

Provider credentials are set in the environment before the application
module is imported, since it builds its app instance at import time.
"""

import asyncio
import os
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import pytest
from fastapi.responses import RedirectResponse
from fastapi.testclient import TestClient

os.environ.setdefault("GOOGLE_CLIENT_ID", "test-google-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-google-client-secret")
os.environ.setdefault("FACEBOOK_CLIENT_ID", "test-facebook-app-id")
os.environ.setdefault("FACEBOOK_CLIENT_SECRET", "test-facebook-app-secret")

from login_server.app.auth.providers import ProviderRegistry  # noqa: E402
from login_server.app.auth.session import InMemorySessionStore  # noqa: E402
from login_server.app.config import Settings  # noqa: E402
from login_server.app.main import create_app  # noqa: E402
from login_server.app.models import AuthResult  # noqa: E402


class StubProvider:
    """
    Provider strategy double.

    Redirects to ``authorize_url`` with the callback URL and treats
    ``?code=VALID`` as a successful exchange returning ``profile``.
    """

    def __init__(self, name: str, authorize_url: str, callback_url: str, profile: Optional[Dict[str, Any]] = None):
        self.name = name
        self.authorize_url = authorize_url
        self.callback_url = callback_url
        self.profile = profile
        self.calls = 0

    async def authorize_redirect(self, request):
        query = urlencode({"client_id": "stub", "redirect_uri": self.callback_url})
        return RedirectResponse(url=f"{self.authorize_url}?{query}", status_code=302)

    async def authenticate(self, request):
        self.calls += 1
        if request.query_params.get("code") == "VALID" and self.profile is not None:
            return AuthResult.success(self.name, dict(self.profile))
        return AuthResult.failure(self.name, request.query_params.get("error", "invalid_grant"))


@pytest.fixture
def settings():
    """Settings built explicitly so tests do not depend on a local .env"""
    return Settings(
        GOOGLE_CLIENT_ID="test-google-client-id",
        GOOGLE_CLIENT_SECRET="test-google-client-secret",
        GOOGLE_CALLBACK_URL="http://localhost:3000/auth/google/callback",
        FACEBOOK_CLIENT_ID="test-facebook-app-id",
        FACEBOOK_CLIENT_SECRET="test-facebook-app-secret",
        FACEBOOK_CALLBACK_URL="http://localhost:3000/auth/facebook/callback",
        SESSION_COOKIE_NAME="sid",
        SESSION_MAX_AGE_SECONDS=3600,
        _env_file=None,
    )


@pytest.fixture
def store(settings):
    return InMemorySessionStore(max_age_seconds=settings.SESSION_MAX_AGE_SECONDS)


@pytest.fixture
def stub_providers(settings):
    return ProviderRegistry([
        StubProvider(
            "google",
            "https://accounts.google.com/o/oauth2/v2/auth",
            settings.GOOGLE_CALLBACK_URL,
            profile={"provider": "google", "id": "g123", "displayName": "Grace Hopper"},
        ),
        StubProvider(
            "facebook",
            "https://www.facebook.com/v21.0/dialog/oauth",
            settings.FACEBOOK_CALLBACK_URL,
            profile={"provider": "facebook", "id": "fb456", "displayName": "Ada Lovelace"},
        ),
    ])


@pytest.fixture
def client(settings, store, stub_providers):
    """Test client wired to the stub providers and an in-memory store"""
    app = create_app(settings=settings, store=store, providers=stub_providers)
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def oauth_client(settings, store):
    """Test client wired to the real Authlib-backed provider strategies"""
    app = create_app(settings=settings, store=store)
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def stored_session():
    """Read a record straight from a store, outside any request"""
    def _read(store: InMemorySessionStore, session_id: str):
        return asyncio.run(store.load(session_id))
    return _read
