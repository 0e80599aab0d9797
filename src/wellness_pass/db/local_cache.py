"""Local durable key/value cache."""

import sqlite3
from pathlib import Path

from .engine import get_cache_path, init_cache


class LocalCache:
    """Synchronous string cache that survives restarts.

    The form state, the offline queue and the roster snapshot each use
    their own key.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or get_cache_path()
        init_cache(self.path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def get(self, key: str) -> str | None:
        """Get a value, or None if the key is absent."""
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT value FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO cache_entries (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()
