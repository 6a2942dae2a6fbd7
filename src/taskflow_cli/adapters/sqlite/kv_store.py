"""SQLite implementation of KeyValueStore."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from taskflow_cli.adapters.memory import entry_size
from taskflow_cli.adapters.sqlite.connection import get_connection
from taskflow_cli.exceptions import PersistenceError, StorageQuotaExceeded
from taskflow_cli.repositories import KeyValueStore
from taskflow_cli.utils.time_utils import utc_now


class SqliteKeyValueStore(KeyValueStore):
    """Durable key-value store backed by a single SQLite table."""

    def __init__(self, db_path: str | Path | None = None, quota_bytes: int | None = None):
        """Initialize the store.

        Args:
            db_path: Optional database file path. If None, uses default location.
            quota_bytes: Optional capacity limit for keys plus values
        """
        self.db_path = db_path
        self.quota_bytes = quota_bytes
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    def get(self, key: str) -> str | None:
        try:
            row = self.connection.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read '{key}': {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            self._check_quota(key, value)
        try:
            self.connection.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, utc_now().isoformat()),
            )
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise PersistenceError(f"Failed to write '{key}': {e}") from e

    def remove(self, key: str) -> None:
        try:
            self.connection.execute("DELETE FROM kv WHERE key = ?", (key,))
            self.connection.commit()
        except sqlite3.Error as e:
            self.connection.rollback()
            raise PersistenceError(f"Failed to remove '{key}': {e}") from e

    def list_keys(self) -> list[str]:
        try:
            rows = self.connection.execute("SELECT key FROM kv ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list keys: {e}") from e
        return [row["key"] for row in rows]

    def used_bytes(self) -> int:
        try:
            rows = self.connection.execute("SELECT key, value FROM kv").fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to measure stored data: {e}") from e
        return sum(entry_size(row["key"], row["value"]) for row in rows)

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def _check_quota(self, key: str, value: str) -> None:
        current = self.used_bytes()
        previous = self.get(key)
        if previous is not None:
            current -= entry_size(key, previous)
        if current + entry_size(key, value) > self.quota_bytes:
            raise StorageQuotaExceeded(
                f"Writing '{key}' would exceed the {self.quota_bytes} byte quota"
            )
