"""SQLite implementation of the key-value storage."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Optional

from .base import KeyValueStorage

_SCHEMA = "CREATE TABLE IF NOT EXISTS kv_store (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
_SELECT = "SELECT value FROM kv_store WHERE key = ?"
_UPSERT = (
    "INSERT INTO kv_store (key, value) VALUES (?, ?) "
    "ON CONFLICT(key) DO UPDATE SET value = excluded.value"
)
_DELETE = "DELETE FROM kv_store WHERE key = ?"


class SQLiteStorage(KeyValueStorage):
    """Persist queue data as rows of a single ``kv_store`` table.

    The blocking sqlite3 calls run in a worker thread. Each write is its own
    transaction, committed by the connection context manager.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        with self._conn:
            self._conn.execute(_SCHEMA)

    def _read(self, key: str) -> Optional[str]:
        row = self._conn.execute(_SELECT, (key,)).fetchone()
        return row[0] if row else None

    def _write(self, statement: str, *params: str) -> None:
        with self._conn:
            self._conn.execute(statement, params)

    async def get_item(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, _UPSERT, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._write, _DELETE, key)

    def close(self) -> None:
        self._conn.close()
