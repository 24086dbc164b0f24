"""
Shared fixtures: an in-process store service over in-memory SQLite.

Settings are read once and cached, so the environment is set before anything
under ``app`` is imported.
"""

from __future__ import annotations

import os

os.environ["TS_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TS_BCRYPT_ROUNDS"] = "4"
os.environ["TS_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["TS_LOG_FORMAT"] = "text"

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from app.core import sessions
from app.core.auth import create_jwt, hash_password
from app.core.database import get_session, init_db, make_engine, make_session_factory, session_scope
from app.main import app
from app.models.membership import ProjectMember
from app.models.project import Project
from app.models.user import User
from app.scripts.provision_profile import provision
from timesheet_shared.schemas.common import Role

PASSWORD = "correct-horse-battery"


@pytest.fixture
async def db_engine():
    engine = make_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def revoked():
    """Stand-in for the Redis revocation list."""
    tokens: set[str] = set()

    async def revoke(jti, ttl_seconds=None):
        tokens.add(jti)

    async def is_revoked(jti):
        return jti in tokens

    with patch.object(sessions, "revoke_session", AsyncMock(side_effect=revoke)), \
         patch.object(sessions, "is_session_revoked", AsyncMock(side_effect=is_revoked)):
        yield tokens


@pytest.fixture
def store_app(session_factory, revoked):
    async def override_session():
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def http(store_app):
    async with AsyncClient(transport=ASGITransport(app=store_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seed(session_factory):
    """Two orgs. In ``acme``: an admin, a manager with one report, an
    unrelated contractor, a login with no profile, and two projects."""
    async with session_factory() as session:
        admin = await provision(
            session, email="admin@example.com", password=PASSWORD,
            org_slug="acme", role=Role.ADMIN, full_name="Ada Admin",
        )
        manager = await provision(
            session, email="manager@example.com", password=PASSWORD,
            org_slug="acme", role=Role.MANAGER, full_name="Max Manager",
        )
        report = await provision(
            session, email="report@example.com", password=PASSWORD,
            org_slug="acme", full_name="Rita Report",
            manager_id=manager.id, hourly_rate=40.0,
        )
        contractor = await provision(
            session, email="carl@example.com", password=PASSWORD,
            org_slug="acme", full_name="Carl Contractor",
        )
        outsider = await provision(
            session, email="oscar@example.com", password=PASSWORD,
            org_slug="globex", role=Role.ADMIN, full_name="Oscar Outsider",
        )

        orphan = User(email="orphan@example.com", password_hash=hash_password(PASSWORD))
        session.add(orphan)

        apollo = Project(org_id=admin.org_id, name="Apollo")
        borealis = Project(org_id=admin.org_id, name="Borealis", week_start="monday")
        xenon = Project(org_id=outsider.org_id, name="Xenon")
        session.add_all([apollo, borealis, xenon])
        await session.flush()

        apollo_membership = ProjectMember(
            org_id=admin.org_id, project_id=apollo.id, profile_id=contractor.id, is_active=True
        )
        borealis_membership = ProjectMember(
            org_id=admin.org_id, project_id=borealis.id, profile_id=contractor.id, is_active=False
        )
        session.add_all([apollo_membership, borealis_membership])
        await session.commit()

    return SimpleNamespace(
        admin=admin,
        manager=manager,
        report=report,
        contractor=contractor,
        outsider=outsider,
        orphan=orphan,
        apollo=apollo,
        borealis=borealis,
        xenon=xenon,
        apollo_membership=apollo_membership,
        borealis_membership=borealis_membership,
    )


def bearer(user_id: uuid.UUID) -> dict[str, str]:
    token, _jti, _exp = create_jwt(user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer


@pytest.fixture
def password():
    return PASSWORD
