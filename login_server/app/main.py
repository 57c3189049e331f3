"""
FastAPI Social Login Application Factory
=========================================

This is the main entry point for the social login server. Browsers are sent
to Google or Facebook to sign in, the provider calls back with the user's
profile, and the profile is kept in a server-side session that the landing
page renders.

Routes:
    - /                         : Landing page (current user or login links)
    - /auth/{provider}          : Redirect to the provider (google, facebook)
    - /auth/{provider}/callback : Complete the provider flow, redirect to /
    - /logout                   : Clear identity, destroy session, redirect to /
    - /health                   : Health check endpoint

Environment Variables Required:
    - GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET
    - FACEBOOK_CLIENT_ID / FACEBOOK_CLIENT_SECRET
    - GOOGLE_CALLBACK_URL / FACEBOOK_CALLBACK_URL (defaults to localhost:3000)
    - FACEBOOK_GRAPH_VERSION: Graph API version (default: v21.0)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn login_server.app.main:app --reload --host 0.0.0.0 --port 3000

    Directly:
        python -m login_server.app.main
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
import uvicorn

from login_server.app.auth import auth_router, logout_router
from login_server.app.auth.providers import ProviderRegistry, build_provider_registry
from login_server.app.auth.session import (
    InMemorySessionStore,
    ServerSideSessionMiddleware,
    SessionStore,
)
from login_server.app.config import Settings, get_settings
from login_server.app.models import HealthResponse
from login_server.app.views import render_index

SERVICE_NAME = "login-server"
SERVICE_VERSION = "1.0.0"


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Sets up logging on startup and reports which providers are active.
    """
    settings: Settings = app.state.settings

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("login_server.main")

    logger.info(
        "Starting login server",
        extra={
            "providers": app.state.providers.names(),
            "session_store": type(app.state.session_store).__name__,
            "log_level": settings.LOG_LEVEL,
        }
    )

    yield

    logger.info("Login server shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SessionStore] = None,
    providers: Optional[ProviderRegistry] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Configuration (defaults to the cached environment settings)
        store: Session store (defaults to an in-memory store)
        providers: Provider strategies (defaults to Authlib-backed Google
            and Facebook clients built from settings)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    if store is None:
        store = InMemorySessionStore(max_age_seconds=settings.SESSION_MAX_AGE_SECONDS)
    if providers is None:
        providers = build_provider_registry(settings)

    app = FastAPI(
        title="Social Login Server",
        description="Google and Facebook login with server-side sessions",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_store = store
    app.state.providers = providers

    app.add_middleware(
        ServerSideSessionMiddleware,
        store=store,
        cookie_name=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        https_only=settings.SESSION_COOKIE_SECURE,
    )

    app.include_router(auth_router)
    app.include_router(logout_router)

    @app.get("/", response_class=HTMLResponse, tags=["pages"])
    async def index(request: Request) -> HTMLResponse:
        """Render the landing page with the session's user, if any."""
        return render_index(request.session.get("user"))

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Log unhandled errors and return a standardized error response.
        """
        logger = logging.getLogger("login_server.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "detail": str(exc) if settings.LOG_LEVEL == "DEBUG" else None
            }
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "login_server.app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
