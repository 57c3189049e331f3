"""
OAuth provider strategies.

Each provider is wrapped in an OAuthProviderStrategy around an Authlib
Starlette client. The strategy builds the authorization redirect and turns a
provider callback into an AuthResult: either a normalized profile or a
failure reason. Exchange failures never escape as exceptions.
"""

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from starlette.requests import Request
from starlette.responses import Response

from ..config import ProviderConfig, Settings
from ..models import AuthResult

logger = logging.getLogger(__name__)


# =============================================================================
# Provider Endpoints
# =============================================================================

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://www.googleapis.com/oauth2/v4/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"

FACEBOOK_AUTHORIZE_URL = "https://www.facebook.com/{version}/dialog/oauth"
FACEBOOK_TOKEN_URL = "https://graph.facebook.com/{version}/oauth/access_token"
FACEBOOK_PROFILE_URL = "https://graph.facebook.com/{version}/me"


# =============================================================================
# Exceptions
# =============================================================================

class ProviderNotFoundError(LookupError):
    """Raised when a login is requested for a provider that is not configured"""

    def __init__(self, name: str):
        super().__init__(f"Unknown authentication provider: {name}")
        self.name = name


class ProfileError(ValueError):
    """Raised when a provider returns a profile without a stable identifier"""
    pass


# =============================================================================
# Profile Normalization
# =============================================================================

def normalize_google_profile(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map Google userinfo claims onto the session profile shape.

    Args:
        raw: JSON body of the userinfo endpoint

    Returns:
        Profile dict with provider, id, displayName and the raw claims

    Raises:
        ProfileError: If the claims carry no subject identifier
    """
    if not isinstance(raw, dict) or not raw.get("sub"):
        raise ProfileError("Google profile is missing 'sub'")

    profile: Dict[str, Any] = {
        "provider": "google",
        "id": str(raw["sub"]),
        "displayName": raw.get("name") or "",
    }
    if raw.get("given_name") or raw.get("family_name"):
        profile["name"] = {
            "familyName": raw.get("family_name"),
            "givenName": raw.get("given_name"),
        }
    if raw.get("email"):
        profile["emails"] = [{"value": raw["email"], "verified": bool(raw.get("email_verified"))}]
    if raw.get("picture"):
        profile["photos"] = [{"value": raw["picture"]}]
    profile["_json"] = raw
    return profile


def normalize_facebook_profile(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Graph API /me response onto the session profile shape."""
    if not isinstance(raw, dict) or not raw.get("id"):
        raise ProfileError("Facebook profile is missing 'id'")

    profile: Dict[str, Any] = {
        "provider": "facebook",
        "id": str(raw["id"]),
        "displayName": raw.get("name") or "",
    }
    if raw.get("email"):
        profile["emails"] = [{"value": raw["email"]}]
    picture = (raw.get("picture") or {}).get("data", {}).get("url")
    if picture:
        profile["photos"] = [{"value": picture}]
    profile["_json"] = raw
    return profile


# =============================================================================
# Strategies
# =============================================================================

class ProviderStrategy(Protocol):
    """What the auth routes need from a provider."""

    name: str

    async def authorize_redirect(self, request: Request) -> Response:
        """Redirect the browser to the provider's authorization page."""
        ...

    async def authenticate(self, request: Request) -> AuthResult:
        """Exchange the callback parameters for a profile."""
        ...


class OAuthProviderStrategy:
    """
    Authlib-backed provider strategy.

    Args:
        config: Provider credentials and callback URL
        client: Registered Authlib Starlette OAuth client
        profile_url: Endpoint returning the user's profile
        normalize: Maps the raw profile JSON to the session profile shape
        profile_params: Extra query parameters for the profile request
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: Any,
        profile_url: str,
        normalize: Callable[[Dict[str, Any]], Dict[str, Any]],
        profile_params: Optional[Dict[str, str]] = None,
    ):
        self.name = config.name
        self.config = config
        self.client = client
        self.profile_url = profile_url
        self.normalize = normalize
        self.profile_params = profile_params or {}

    async def authorize_redirect(self, request: Request) -> Response:
        return await self.client.authorize_redirect(request, self.config.callback_url)

    async def authenticate(self, request: Request) -> AuthResult:
        try:
            token = await self.client.authorize_access_token(request)
            response = await self.client.get(
                self.profile_url,
                token=token,
                params=self.profile_params,
            )
            response.raise_for_status()
            profile = self.normalize(response.json())
        except OAuthError as e:
            return AuthResult.failure(self.name, f"oauth error: {e.error or e}")
        except httpx.HTTPError as e:
            return AuthResult.failure(self.name, f"provider request failed: {type(e).__name__}")
        except ValueError as e:
            # ProfileError and malformed JSON bodies
            return AuthResult.failure(self.name, f"invalid profile: {e}")

        return AuthResult.success(self.name, profile)


# =============================================================================
# Registry
# =============================================================================

class ProviderRegistry:
    """Fixed mapping of provider name to strategy, built once at startup."""

    def __init__(self, strategies: Iterable[ProviderStrategy]):
        self._strategies: Dict[str, ProviderStrategy] = {s.name: s for s in strategies}

    def get(self, name: str) -> ProviderStrategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise ProviderNotFoundError(name) from None

    def names(self) -> list:
        return list(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies


def build_provider_registry(settings: Settings, oauth: Optional[OAuth] = None) -> ProviderRegistry:
    """
    Register Google and Facebook with Authlib and wrap them as strategies.

    Google requests only the ``profile`` scope; Facebook uses its default
    scope, so no scope parameter is sent. Facebook endpoints are pinned to
    the configured Graph API version.
    """
    oauth = oauth or OAuth()
    graph_version = settings.FACEBOOK_GRAPH_VERSION
    configs = settings.provider_configs()

    google = configs["google"]
    google_client = oauth.register(
        name="google",
        client_id=google.client_id,
        client_secret=google.client_secret,
        authorize_url=GOOGLE_AUTHORIZE_URL,
        access_token_url=GOOGLE_TOKEN_URL,
        client_kwargs={"scope": "profile"},
    )

    facebook = configs["facebook"]
    facebook_client = oauth.register(
        name="facebook",
        client_id=facebook.client_id,
        client_secret=facebook.client_secret,
        authorize_url=FACEBOOK_AUTHORIZE_URL.format(version=graph_version),
        access_token_url=FACEBOOK_TOKEN_URL.format(version=graph_version),
        client_kwargs={"token_endpoint_auth_method": "client_secret_post"},
    )

    return ProviderRegistry([
        OAuthProviderStrategy(
            google,
            google_client,
            profile_url=GOOGLE_USERINFO_URL,
            normalize=normalize_google_profile,
        ),
        OAuthProviderStrategy(
            facebook,
            facebook_client,
            profile_url=FACEBOOK_PROFILE_URL.format(version=graph_version),
            normalize=normalize_facebook_profile,
            profile_params={"fields": "id,name"},
        ),
    ])
