"""
Authentication routes for social login and logout.

This module implements the redirect/callback flow for each configured
provider and commits the resulting identity into the server-side session.
Both outcomes of a callback redirect to the landing page; the only visible
difference is whether the session now carries a ``user``.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from .providers import ProviderNotFoundError, ProviderRegistry, ProviderStrategy
from .session import SessionStoreError, destroy_session, rotate_session
from ..models import AuthResult

logger = logging.getLogger(__name__)

LANDING_ROUTE = "/"


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
)

logout_router = APIRouter(tags=["authentication"])


# =============================================================================
# Dependencies
# =============================================================================

def get_provider_registry(request: Request) -> ProviderRegistry:
    return request.app.state.providers


def resolve_provider(
    provider: str,
    providers: ProviderRegistry = Depends(get_provider_registry),
) -> ProviderStrategy:
    """Look up the strategy for the path's provider, 404 if it is not configured."""
    try:
        return providers.get(provider)
    except ProviderNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown authentication provider: {provider}",
        )


def _landing_redirect() -> RedirectResponse:
    return RedirectResponse(url=LANDING_ROUTE, status_code=status.HTTP_302_FOUND)


# =============================================================================
# Login Endpoint
# =============================================================================

@auth_router.get("/{provider}")
async def begin_login(
    request: Request,
    strategy: ProviderStrategy = Depends(resolve_provider),
):
    """
    Initiate the login flow by redirecting to the provider.

    Google is asked for the ``profile`` scope only; Facebook gets its
    default scope. The session's identity is not touched here.

    Returns:
        RedirectResponse to the provider's authorization endpoint
    """
    logger.info("Starting login", extra={"provider": strategy.name})
    return await strategy.authorize_redirect(request)


# =============================================================================
# Callback Endpoint
# =============================================================================

@auth_router.get("/{provider}/callback")
async def handle_callback(
    request: Request,
    strategy: ProviderStrategy = Depends(resolve_provider),
):
    """
    Complete the login flow for a provider.

    On success the session moves to a fresh id and the normalized profile
    is stored as ``session["user"]``.
    On any failure (denied consent, bad code, state mismatch, network
    error) the session is left exactly as it was.

    Returns:
        RedirectResponse to the landing page, in every case
    """
    try:
        result = await strategy.authenticate(request)
    except Exception as e:
        # Log the full error but never surface it to the browser
        logger.error(f"Unexpected error in {strategy.name} callback: {e}", exc_info=True)
        result = AuthResult.failure(strategy.name, "unexpected error")

    if result.ok:
        rotate_session(request)
        request.session["user"] = result.profile
        logger.info(
            "Login succeeded",
            extra={"provider": result.provider, "user_id": result.profile.get("id")},
        )
    else:
        logger.warning(
            f"Login failed: {result.error}",
            extra={"provider": result.provider},
        )

    return _landing_redirect()


# =============================================================================
# Logout Endpoint
# =============================================================================

@logout_router.get("/logout")
async def logout(request: Request):
    """
    Log out and tear down the whole session.

    The identity is removed first, then the session record is destroyed.
    A store failure is logged and the redirect still happens; the cleared
    session is then saved in place of the old one.
    """
    user = request.session.pop("user", None)
    if user is not None:
        logger.info("Logging out", extra={"user_id": user.get("id")})

    try:
        await destroy_session(request)
    except SessionStoreError as e:
        logger.error(f"Error destroying session: {e}", exc_info=True)

    return _landing_redirect()
