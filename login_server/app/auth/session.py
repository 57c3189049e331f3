"""
Server-side Session Management Module
======================================

Attaches a server-side session to every HTTP request through a cookie.

The cookie only carries an opaque session identifier; the session payload
(including the authenticated ``user``) lives in a SessionStore. The store is
injected into the middleware so an external backing store can replace the
in-memory one without touching the auth routes.

Lifecycle:
- load or create: on every request, from the cookie
- save: before the response headers go out, refreshing the cookie
- destroy: on logout, removing the record and expiring the cookie
"""

import abc
import copy
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection, Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..models import SessionRecord

logger = logging.getLogger(__name__)

# Scope keys holding the per-request session bookkeeping
SESSION_STATE_KEY = "login_server.session"
SESSION_STORE_KEY = "login_server.session_store"


# =============================================================================
# Exceptions
# =============================================================================

class SessionStoreError(Exception):
    """Raised when the backing session store cannot complete an operation"""
    pass


# =============================================================================
# Session Stores
# =============================================================================

def new_session_id() -> str:
    """Generate an opaque, URL-safe session identifier."""
    return secrets.token_urlsafe(32)


class SessionStore(abc.ABC):
    """
    Storage interface for server-side sessions.

    Implementations must be safe to call from concurrent requests. No
    transactional guarantee is required: concurrent writes to the same
    session are last-write-wins.
    """

    def __init__(self, max_age_seconds: int):
        self.max_age_seconds = max_age_seconds

    def create(self) -> SessionRecord:
        """Build a new, empty, not yet persisted session record."""
        return SessionRecord.new(new_session_id(), self.max_age_seconds)

    @abc.abstractmethod
    async def load(self, session_id: str) -> Optional[SessionRecord]:
        """Return the live record for session_id, or None if unknown or expired."""

    @abc.abstractmethod
    async def save(self, record: SessionRecord) -> None:
        """Persist record and refresh its expiry."""

    @abc.abstractmethod
    async def destroy(self, session_id: str) -> None:
        """Remove the record entirely. Unknown ids are a no-op."""


class InMemorySessionStore(SessionStore):
    """
    Process-local session store.

    Records are deep-copied on the way in and out so that a request never
    mutates stored state except through save(). Expired records are swept
    on save, at most once every sweep_interval_seconds.
    """

    def __init__(self, max_age_seconds: int = 86400, sweep_interval_seconds: float = 60.0):
        super().__init__(max_age_seconds)
        self.sweep_interval_seconds = sweep_interval_seconds
        self._records: Dict[str, SessionRecord] = {}
        self._last_sweep = time.monotonic()

    async def load(self, session_id: str) -> Optional[SessionRecord]:
        record = self._records.get(session_id)
        if record is None:
            return None
        if record.is_expired():
            logger.debug("Discarding expired session")
            self._records.pop(session_id, None)
            return None
        return record.model_copy(deep=True)

    async def save(self, record: SessionRecord) -> None:
        self._sweep_expired()
        record.touch(self.max_age_seconds)
        self._records[record.session_id] = record.model_copy(deep=True)

    async def destroy(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    def _sweep_expired(self) -> None:
        now = time.monotonic()
        if now - self._last_sweep < self.sweep_interval_seconds:
            return
        self._last_sweep = now

        cutoff = datetime.now(timezone.utc)
        expired = [sid for sid, record in self._records.items() if record.is_expired(cutoff)]
        for session_id in expired:
            del self._records[session_id]
        if expired:
            logger.debug(f"Swept {len(expired)} expired sessions")

    def __len__(self) -> int:
        return len(self._records)


# =============================================================================
# Per-request Session State
# =============================================================================

class _SessionState:
    """Bookkeeping for the session attached to a single request."""

    def __init__(self, record: SessionRecord):
        self.record = record
        self.destroyed = False
        # Id the session had before rotate_session, removed once the new id is saved
        self.previous_id: Optional[str] = None


async def destroy_session(request: Request) -> None:
    """
    Destroy the session attached to request.

    Clears the in-request payload, removes the record from the store, and
    tells the middleware to expire the cookie instead of saving.

    Raises:
        SessionStoreError: If the store fails to remove the record. The
            payload is still cleared, so the middleware will persist an
            anonymous session in its place.
    """
    state: _SessionState = request.scope[SESSION_STATE_KEY]
    store: SessionStore = request.scope[SESSION_STORE_KEY]

    request.session.clear()
    await store.destroy(state.record.session_id)
    if state.previous_id is not None:
        await store.destroy(state.previous_id)
    state.destroyed = True


def rotate_session(request: Request) -> None:
    """
    Move the session attached to request to a fresh id.

    The payload is kept. The record under the old id is removed after the
    new one is saved, so a session id planted before login never becomes
    an authenticated one.
    """
    state: _SessionState = request.scope[SESSION_STATE_KEY]

    if state.previous_id is None:
        state.previous_id = state.record.session_id
    state.record.session_id = new_session_id()


# =============================================================================
# ASGI Middleware
# =============================================================================

class ServerSideSessionMiddleware:
    """
    Pure ASGI middleware exposing a store-backed session as ``request.session``.

    Every response sets or refreshes the session cookie, anonymous visitors
    included, except when the handler destroyed the session, in which case
    the cookie is expired.
    """

    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        cookie_name: str = "sid",
        max_age: int = 86400,
        path: str = "/",
        same_site: str = "lax",
        https_only: bool = False,
    ) -> None:
        self.app = app
        self.store = store
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.path = path
        self.security_flags = "httponly; samesite=" + same_site
        if https_only:
            self.security_flags += "; secure"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        record = await self._load_or_create(connection.cookies.get(self.cookie_name))

        state = _SessionState(record)
        scope[SESSION_STATE_KEY] = state
        scope[SESSION_STORE_KEY] = self.store
        scope["session"] = record.data

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                if state.destroyed:
                    headers.append("Set-Cookie", self._cookie_header("null", max_age=0))
                else:
                    await self._commit(state, scope["session"], headers)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    async def _load_or_create(self, session_id: Optional[str]) -> SessionRecord:
        if session_id:
            try:
                record = await self.store.load(session_id)
            except SessionStoreError as e:
                logger.error(f"Failed to load session, starting a new one: {e}", exc_info=True)
                record = None
            if record is not None:
                return record
        return self.store.create()

    async def _commit(self, state: _SessionState, data: dict, headers: MutableHeaders) -> None:
        record = state.record
        record.data = copy.deepcopy(data)
        try:
            await self.store.save(record)
        except SessionStoreError as e:
            logger.error(f"Failed to save session: {e}", exc_info=True)
            return
        headers.append("Set-Cookie", self._cookie_header(record.session_id, max_age=self.max_age))

        if state.previous_id is not None:
            try:
                await self.store.destroy(state.previous_id)
            except SessionStoreError as e:
                logger.error(f"Failed to remove rotated session: {e}", exc_info=True)

    def _cookie_header(self, value: str, max_age: int) -> str:
        return "%s=%s; path=%s; Max-Age=%d; %s" % (
            self.cookie_name,
            value,
            self.path,
            max_age,
            self.security_flags,
        )


__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "SessionStoreError",
    "ServerSideSessionMiddleware",
    "destroy_session",
    "rotate_session",
    "new_session_id",
]
