"""SQLite session storage backend.

Provides persistent key-value storage using a SQLite database file.
Uses aiosqlite for async access.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from ..errors import PersistenceReadError, PersistenceWriteError
from .base import SessionStorage

logger = logging.getLogger(__name__)


class SQLiteSessionStorage(SessionStorage):
    """SQLite-backed key-value storage.

    Stores blobs in a single `kv` table keyed by storage key.
    """

    def __init__(self, path: str | Path = "~/.thinkchat/history.db"):
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            await self._connection.commit()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceWriteError(f"Cannot open {self._db_path}: {e}") from e

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SQLite storage is not connected. Call connect() first.")
        return self._connection

    async def read(self, key: str) -> str | None:
        conn = self._require_connection()
        try:
            async with conn.execute("SELECT value FROM kv WHERE key = ?", (key,)) as cursor:
                row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceReadError(f"Cannot read key {key!r}: {e}") from e
        return row[0] if row else None

    async def write(self, key: str, blob: str) -> None:
        conn = self._require_connection()
        now = datetime.now(timezone.utc).isoformat()
        try:
            await conn.execute("""
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, blob, now))
            await conn.commit()
        except sqlite3.Error as e:
            raise PersistenceWriteError(f"Cannot write key {key!r}: {e}") from e
        logger.debug(f"Stored {len(blob)} chars under {key!r}")

    async def delete(self, key: str) -> None:
        conn = self._require_connection()
        try:
            await conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            await conn.commit()
        except sqlite3.Error as e:
            raise PersistenceWriteError(f"Cannot delete key {key!r}: {e}") from e

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
