"""
Persisted local key-value cache (SQLite).

Holds the last applied appearance preferences so they can be shown before the
remote profile has loaded. Only ``PreferenceReconciler`` writes the
preference keys.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone

import aiosqlite

PREFS_KEY = "ts_ui_prefs_v1"
LEGACY_PREFS_KEY = "ts_theme_prefs"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS local_cache (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class LocalCache:
    """Async SQLite string-keyed cache."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        if self._db_path != ":memory:":
            os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def get(self, key: str) -> str | None:
        assert self._db
        cursor = await self._db.execute(
            "SELECT value FROM local_cache WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        assert self._db
        now = datetime.now(timezone.utc).isoformat()
        await self._db.execute(
            """INSERT INTO local_cache (key, value, updated_at)
               VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at""",
            (key, value, now),
        )
        await self._db.commit()

    async def delete(self, key: str) -> None:
        assert self._db
        await self._db.execute("DELETE FROM local_cache WHERE key = ?", (key,))
        await self._db.commit()
