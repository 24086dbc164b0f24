"""
Session/Profile resolver.

Resolves the current auth session to exactly one profile and exposes the
loading / ready / error state every workspace consumes.

    Init -> Loading -> Ready | Unauthenticated | ProfileMissing | Fault

Every auth-state change and every ``refresh()`` goes back to Loading; no
state is terminal. Each resolution carries a generation number and only the
latest one may publish its result. Faults become state, never exceptions.
"""

from __future__ import annotations

import asyncio
import uuid
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from timesheet_shared.errors import AuthSessionFault, ProfileMissing, QueryFault
from timesheet_shared.schemas.profiles import ProfileRead

from .api import StoreClient
from .auth import AuthClient, AuthEvent, Subscription

log = structlog.get_logger()


class ResolverStatus(str, Enum):
    INIT = "init"
    LOADING = "loading"
    READY = "ready"
    UNAUTHENTICATED = "unauthenticated"
    PROFILE_MISSING = "profile_missing"
    FAULT = "fault"


class ProfileState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ResolverStatus = ResolverStatus.INIT
    identity: Optional[uuid.UUID] = None
    profile: Optional[ProfileRead] = None
    error: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self.status in (ResolverStatus.INIT, ResolverStatus.LOADING)


StateListener = Callable[[ProfileState], Awaitable[None]]


class ProfileResolver:
    def __init__(
        self,
        auth: AuthClient,
        store: StoreClient,
        *,
        timeout_seconds: Optional[float] = None,
    ):
        self._auth = auth
        self._store = store
        self._timeout = timeout_seconds
        self._state = ProfileState()
        self._generation = 0
        self._alive = True
        self._listeners: list[StateListener] = []
        self._subscription: Optional[Subscription] = None

    @property
    def state(self) -> ProfileState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def start(self) -> ProfileState:
        """Subscribe to auth-state changes and resolve once."""
        if self._subscription is None:
            self._subscription = self._auth.on_auth_state_change(self._on_auth_event)
        return await self.refresh()

    def close(self) -> None:
        """Stop publishing results. In-flight requests are left to finish."""
        self._alive = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def _on_auth_event(self, event: AuthEvent, _user_id: Optional[uuid.UUID]) -> None:
        if not self._alive:
            return
        log.debug("resolver.auth_event", auth_event=event.value)
        await self.refresh()

    async def refresh(self) -> ProfileState:
        """Re-run the full resolution unconditionally."""
        self._generation += 1
        generation = self._generation
        await self._publish(
            generation,
            self._state.model_copy(update={"status": ResolverStatus.LOADING, "error": None}),
        )
        return await self._publish(generation, await self._resolve())

    async def _bounded(self, awaitable):
        if self._timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, self._timeout)

    async def _resolve(self) -> ProfileState:
        try:
            identity = await self._bounded(self._auth.get_session())
        except AuthSessionFault as exc:
            return ProfileState(status=ResolverStatus.FAULT, error=f"Auth session error: {exc}")
        except asyncio.TimeoutError:
            return ProfileState(status=ResolverStatus.FAULT, error="Auth session lookup timed out")

        if identity is None:
            return ProfileState(status=ResolverStatus.UNAUTHENTICATED)

        try:
            profile = await self._bounded(self._store.fetch_my_profile())
        except ProfileMissing as exc:
            return ProfileState(
                status=ResolverStatus.PROFILE_MISSING, identity=identity, error=str(exc)
            )
        except QueryFault as exc:
            return ProfileState(
                status=ResolverStatus.FAULT, identity=identity, error=f"Profile query error: {exc}"
            )
        except asyncio.TimeoutError:
            return ProfileState(
                status=ResolverStatus.FAULT, identity=identity, error="Profile query timed out"
            )

        return ProfileState(status=ResolverStatus.READY, identity=identity, profile=profile)

    async def _publish(self, generation: int, state: ProfileState) -> ProfileState:
        if not self._alive:
            log.debug("resolver.closed_result_dropped", generation=generation)
            return self._state
        if generation != self._generation:
            log.info(
                "resolver.stale_result_discarded",
                generation=generation,
                latest=self._generation,
            )
            return self._state

        self._state = state
        if state.status != ResolverStatus.LOADING:
            log.info("resolver.resolved", status=state.status.value, error=state.error)
        for listener in list(self._listeners):
            try:
                await listener(state)
            except Exception:
                log.exception(
                    "resolver.listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    status=state.status.value,
                )
        return state
