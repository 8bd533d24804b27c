"""
SQLite store for persisted session and cache state.

Human-inspectable single-file database; each ``set`` commits on its own.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from washsync.errors import StorageError
from washsync.storage.base import KeyValueStore


class SQLiteStore(KeyValueStore):
    """
    SQLite-based key-value storage.

    Features:
    - Human-inspectable database
    - Per-call durability (autocommit per operation)
    - Portable single-file database
    """

    SCHEMA = """
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value BLOB NOT NULL,
        updated_at TEXT NOT NULL
    );
    """

    def __init__(self, db_path: str | Path):
        self._db_path = Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def initialize(self) -> None:
        """Open the database file and create the table."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(self.SCHEMA)
            self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open state database {self._db_path}: {e}") from e

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("SQLiteStore not initialized")
        return self._conn

    async def get(self, key: str) -> bytes | None:
        try:
            row = self._connection().execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {key!r}: {e}") from e
        return bytes(row[0]) if row else None

    async def set(self, key: str, value: bytes) -> None:
        conn = self._connection()
        try:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, sqlite3.Binary(value), datetime.now().isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write {key!r}: {e}") from e

    async def remove(self, key: str) -> None:
        conn = self._connection()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot remove {key!r}: {e}") from e

    async def remove_many(self, keys: list[str] | tuple[str, ...]) -> None:
        if not keys:
            return
        conn = self._connection()
        try:
            conn.executemany("DELETE FROM kv WHERE key = ?", [(k,) for k in keys])
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot remove {len(keys)} keys: {e}") from e

    async def keys(self) -> list[str]:
        try:
            rows = self._connection().execute("SELECT key FROM kv ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot list keys: {e}") from e
        return [row[0] for row in rows]
