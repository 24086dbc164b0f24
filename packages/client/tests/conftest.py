"""
Client fixtures: a scriptable fake store for unit tests, and signed-in
``TimesheetApp`` instances wired to the in-process store service.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from timesheet_client.api import StoreClient
from timesheet_client.app import TimesheetApp
from timesheet_client.cache import LocalCache
from timesheet_client.config import CacheConfig, ClientConfig, CredentialsConfig, ServerConfig
from timesheet_client.resolver import ProfileState, ResolverStatus
from timesheet_shared.errors import ProfileMissing, QueryFault
from timesheet_shared.schemas.profiles import ProfileRead, SessionRead, TokenResponse

ORG_ID = uuid.UUID("00000000-0000-0000-0000-0000000000aa")


def make_profile(role="contractor", **fields) -> ProfileRead:
    fields.setdefault("id", uuid.uuid4())
    fields.setdefault("org_id", ORG_ID)
    fields.setdefault("full_name", f"{role.title()} Person")
    return ProfileRead(role=role, **fields)


class FakeStore:
    """Just enough of ``StoreClient`` for the auth session and resolver.

    ``fetch_gates`` holds events; each profile fetch pops one and waits on it
    before answering, so tests can order overlapping resolutions.
    """

    def __init__(self):
        self.token: Optional[str] = None
        self.users: dict[str, uuid.UUID] = {}
        self.profiles: dict[uuid.UUID, ProfileRead] = {}
        self.session_user: Optional[uuid.UUID] = None
        self.session_error: Optional[QueryFault] = None
        self.profile_error: Optional[QueryFault] = None
        self.fetch_gates: list[asyncio.Event] = []
        self.saved_prefs: list = []
        self.save_error: Optional[QueryFault] = None
        self.logouts = 0

    def add(self, email: str, profile: Optional[ProfileRead] = None) -> uuid.UUID:
        uid = profile.id if profile is not None else uuid.uuid4()
        self.users[email] = uid
        if profile is not None:
            self.profiles[uid] = profile
        return uid

    def _token(self, uid: uuid.UUID) -> TokenResponse:
        return TokenResponse(
            access_token=f"tok-{uid}-{uuid.uuid4().hex[:6]}",
            user_id=uid,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )

    async def login(self, email: str, password: str) -> TokenResponse:
        if email not in self.users:
            raise QueryFault("Invalid email or password", status_code=401)
        self.session_user = self.users[email]
        return self._token(self.session_user)

    async def logout(self) -> None:
        self.logouts += 1
        self.session_user = None

    async def refresh_token(self) -> TokenResponse:
        return self._token(self.session_user)

    async def get_session(self) -> SessionRead:
        if self.session_error is not None:
            raise self.session_error
        if self.session_user is None:
            raise QueryFault("Session has been revoked", status_code=401)
        return SessionRead(user_id=self.session_user, expires_at=datetime.now(timezone.utc))

    async def fetch_my_profile(self) -> ProfileRead:
        uid = self.session_user
        if self.fetch_gates:
            await self.fetch_gates.pop(0).wait()
        if self.profile_error is not None:
            raise self.profile_error
        if uid not in self.profiles:
            raise ProfileMissing("Profile missing: no row found in profiles for this user.")
        return self.profiles[uid]

    async def save_ui_prefs(self, prefs) -> ProfileRead:
        if self.save_error is not None:
            raise self.save_error
        self.saved_prefs.append(prefs)
        profile = self.profiles[self.session_user]
        updated = profile.model_copy(update={"ui_prefs": prefs.as_dataset()})
        self.profiles[self.session_user] = updated
        return updated


class StubResolver:
    """Resolver stand-in with a fixed state; counts refreshes."""

    def __init__(self, profile: Optional[ProfileRead] = None, error: Optional[str] = None):
        status = ResolverStatus.READY if profile is not None else ResolverStatus.FAULT
        self.state = ProfileState(
            status=status,
            identity=profile.id if profile is not None else None,
            profile=profile,
            error=error,
        )
        self.refresh = AsyncMock(return_value=self.state)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def mock_store():
    return AsyncMock(spec=StoreClient)


@pytest.fixture
async def cache():
    c = LocalCache(":memory:")
    await c.open()
    yield c
    await c.close()


# ---------------------------------------------------------------------------
# Against the in-process store service
# ---------------------------------------------------------------------------


@pytest.fixture
async def signed_in(http, seed, password, monkeypatch):
    """Factory: ``await signed_in(email)`` returns a started ``TimesheetApp``."""
    monkeypatch.setenv("TS_TEST_PASSWORD", password)
    apps: list[TimesheetApp] = []

    async def factory(email: str, sign_in: bool = True) -> TimesheetApp:
        config = ClientConfig(
            server=ServerConfig(url="http://test"),
            cache=CacheConfig(db_path=":memory:"),
            credentials=CredentialsConfig(email=email, password_env="TS_TEST_PASSWORD"),
            resolve_timeout_seconds=5,
        )
        app = TimesheetApp(config, http_client=http)
        apps.append(app)
        await app.start(sign_in=sign_in)
        return app

    yield factory

    for app in apps:
        await app.close()


@pytest.fixture
def new_profile():
    return make_profile


@pytest.fixture
def resolver_for():
    """``resolver_for(profile)`` gives a resolver stub already in that state."""
    return StubResolver
