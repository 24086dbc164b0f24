"""
Client-side auth session.

Owns the bearer token held by the ``StoreClient`` and notifies subscribers on
every auth-state transition (sign-in, sign-out, token refresh).
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog

from timesheet_shared.errors import AuthSessionFault, QueryFault

from .api import StoreClient

log = structlog.get_logger()


class AuthEvent(str, Enum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    TOKEN_REFRESHED = "token_refreshed"


AuthCallback = Callable[[AuthEvent, Optional[uuid.UUID]], Awaitable[None]]


class Subscription:
    """Handle returned by ``on_auth_state_change``."""

    def __init__(self, auth: "AuthClient", callback: AuthCallback):
        self._auth = auth
        self._callback = callback

    def unsubscribe(self) -> None:
        self._auth._remove(self._callback)


class AuthClient:
    """Session accessor plus auth-state subscription."""

    def __init__(self, store: StoreClient):
        self._store = store
        self._user_id: Optional[uuid.UUID] = None
        self._callbacks: list[AuthCallback] = []

    @property
    def token(self) -> Optional[str]:
        return self._store.token

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: AuthCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def _emit(self, event: AuthEvent) -> None:
        log.info("auth.state_changed", auth_event=event.value)
        for callback in list(self._callbacks):
            await callback(event, self._user_id)

    async def get_session(self) -> Optional[uuid.UUID]:
        """Resolve the current token to an identity, or None when signed out.

        A rejected token (401) is a signed-out session, not a fault.
        Raises AuthSessionFault when the lookup itself fails.
        """
        if not self._store.token:
            return None
        try:
            session = await self._store.get_session()
        except QueryFault as exc:
            if exc.status_code == 401:
                log.info("auth.session_expired")
                self._store.token = None
                self._user_id = None
                return None
            raise AuthSessionFault(exc.message) from exc
        self._user_id = session.user_id
        return session.user_id

    async def sign_in(self, email: str, password: str) -> uuid.UUID:
        """Raises QueryFault when the credentials are rejected."""
        token = await self._store.login(email, password)
        self._store.token = token.access_token
        self._user_id = token.user_id
        await self._emit(AuthEvent.SIGNED_IN)
        return token.user_id

    async def sign_out(self) -> None:
        if self._store.token:
            try:
                await self._store.logout()
            except QueryFault as exc:
                # The local session ends regardless.
                log.warning("auth.logout_failed", error=exc.message)
        self._store.token = None
        self._user_id = None
        await self._emit(AuthEvent.SIGNED_OUT)

    async def refresh_session(self) -> None:
        token = await self._store.refresh_token()
        self._store.token = token.access_token
        self._user_id = token.user_id
        await self._emit(AuthEvent.TOKEN_REFRESHED)
