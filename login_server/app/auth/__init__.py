"""
Authentication Package

This package handles social login through third-party OAuth providers
(Google, Facebook) and keeps the resulting identity in a server-side session.

Modules:
- routes: Login, callback and logout endpoints
- providers: Authlib-backed provider strategies and the provider registry
- session: Session store interface, in-memory store, session middleware

The authentication flow:
1. Browser requests /auth/{provider}
2. User authenticates with the provider
3. Provider redirects back to /auth/{provider}/callback
4. Profile is stored in the session as ``user`` and the browser lands on /
5. /logout clears the identity and destroys the session
"""

from .routes import auth_router, logout_router

__all__ = [
    "auth_router",
    "logout_router",
]
