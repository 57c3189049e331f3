"""Configuration tests."""

import pytest
from pydantic import ValidationError

from login_server.app.config import SUPPORTED_PROVIDERS, Settings


def test_provider_configs_cover_supported_providers(settings):
    configs = settings.provider_configs()

    assert tuple(configs) == SUPPORTED_PROVIDERS
    assert configs["google"].client_id == "test-google-client-id"
    assert configs["facebook"].callback_url == "http://localhost:3000/auth/facebook/callback"


def test_provider_config_is_immutable(settings):
    google = settings.provider_configs()["google"]

    with pytest.raises(ValidationError):
        google.client_secret = "changed"


def test_defaults(settings):
    assert settings.SESSION_COOKIE_SECURE is False
    assert settings.SERVER_PORT == 3000
    assert settings.LOG_LEVEL == "INFO"
    assert settings.FACEBOOK_GRAPH_VERSION == "v21.0"


def test_log_level_is_normalized(settings):
    updated = Settings(**{**settings.model_dump(), "LOG_LEVEL": "debug"}, _env_file=None)

    assert updated.LOG_LEVEL == "DEBUG"


def test_invalid_log_level_rejected(settings):
    with pytest.raises(ValidationError):
        Settings(**{**settings.model_dump(), "LOG_LEVEL": "LOUD"}, _env_file=None)


def test_invalid_cookie_name_rejected(settings):
    with pytest.raises(ValidationError):
        Settings(**{**settings.model_dump(), "SESSION_COOKIE_NAME": "my sid"}, _env_file=None)


@pytest.mark.parametrize("version", ["3.2", "v3", "latest"])
def test_invalid_graph_version_rejected(settings, version):
    with pytest.raises(ValidationError):
        Settings(**{**settings.model_dump(), "FACEBOOK_GRAPH_VERSION": version}, _env_file=None)


def test_session_max_age_bounds(settings):
    with pytest.raises(ValidationError):
        Settings(**{**settings.model_dump(), "SESSION_MAX_AGE_SECONDS": 5}, _env_file=None)


def test_missing_credentials_rejected(monkeypatch):
    monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)
    monkeypatch.delenv("GOOGLE_CLIENT_SECRET", raising=False)

    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None)

    assert "GOOGLE_CLIENT_ID" in str(exc_info.value)
