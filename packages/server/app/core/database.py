"""
Store engine and sessions.

Production runs on Postgres through asyncpg. An in-memory SQLite URL gets one
shared connection so every session sees the same tables.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()

STORE_TABLES = ("organizations", "users", "profiles", "projects", "project_members")


def make_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite") and ":memory:" in url:
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False)


engine = make_engine(settings.database_url, echo=settings.debug)
async_session_factory = make_session_factory(engine)


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create whichever store tables are missing. Existing rows are untouched."""
    import app.models  # noqa: F401  (registers the tables)

    tables = [SQLModel.metadata.tables[name] for name in STORE_TABLES]
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all, tables=tables)


@asynccontextmanager
async def session_scope(
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncIterator[AsyncSession]:
    """One transaction: commit when the block finishes, roll back on error."""
    async with (factory or async_session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one transactional session per request."""
    async with session_scope() as session:
        yield session
