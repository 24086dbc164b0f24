"""
Client composition root.

Wires the store client, auth session, resolver, preference reconciler and the
workspaces together for one signed-in session.
"""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from .api import StoreClient
from .auth import AuthClient
from .cache import LocalCache
from .config import ClientConfig
from .display import DatasetSink, DisplaySink
from .people import PeopleWorkspace
from .preferences import PreferenceReconciler
from .projects import ProjectsWorkspace
from .resolver import ProfileResolver, ProfileState

log = structlog.get_logger()


class TimesheetApp:
    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        sink: Optional[DisplaySink] = None,
    ):
        self.config = config
        self.store = StoreClient(
            config.server.url,
            verify_tls=config.server.verify_tls,
            request_timeout=config.server.request_timeout_seconds,
            client=http_client,
        )
        self.auth = AuthClient(self.store)
        self.resolver = ProfileResolver(
            self.auth, self.store, timeout_seconds=config.resolve_timeout_seconds
        )
        self.cache = LocalCache(config.cache.db_path)
        self.sink = sink if sink is not None else DatasetSink()
        self.prefs = PreferenceReconciler(self.cache, self.sink, self.store)
        self.people = PeopleWorkspace(self.resolver, self.store)
        self.projects = ProjectsWorkspace(self.resolver, self.store)
        self._remove_listener = None

    @property
    def state(self) -> ProfileState:
        return self.resolver.state

    async def start(self, sign_in: bool = True) -> ProfileState:
        """Open resources, apply cached prefs, then resolve the session.

        Signs in with the configured credentials when a password is available;
        a rejected sign-in raises QueryFault.
        """
        await self.store.open()
        await self.cache.open()
        await self.prefs.bootstrap()
        self._remove_listener = self.resolver.add_listener(self.prefs.on_profile_state)
        await self.resolver.start()

        creds = self.config.credentials
        password = creds.password
        if sign_in and creds.email and password:
            await self.auth.sign_in(creds.email, password)
        elif sign_in:
            log.info("app.no_credentials", email=creds.email, password_env=creds.password_env)
        return self.resolver.state

    async def close(self) -> None:
        self.resolver.close()
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        await self.store.close()
        await self.cache.close()

    async def __aenter__(self) -> "TimesheetApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
