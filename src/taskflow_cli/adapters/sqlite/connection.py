"""Database connection management for the SQLite key-value vault.

Connections are configured for WAL mode, dict-like rows and owner-only file
permissions, and the schema is created on first use.
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from platformdirs import user_data_dir

from taskflow_cli.adapters.sqlite.schema import ALL_TABLES

MEMORY_DB = ":memory:"


def default_db_path() -> Path:
    """Default vault location inside the user data directory."""
    return Path(user_data_dir("taskflow_cli")) / "taskflow.db"


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Open and configure a connection to the vault.

    Args:
        db_path: Path to database file, ``":memory:"``, or None for the
            default location

    Returns:
        sqlite3.Connection configured for TaskFlow usage
    """
    if db_path is None:
        db_path = default_db_path()

    if str(db_path) == MEMORY_DB:
        connection = sqlite3.connect(MEMORY_DB)
        is_new_database = False
    else:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        is_new_database = not db_path.exists()
        connection = sqlite3.connect(str(db_path), timeout=30.0)
        connection.execute("PRAGMA journal_mode = WAL")

    connection.row_factory = sqlite3.Row

    if is_new_database:
        os.chmod(db_path, 0o600)

    for statement in ALL_TABLES:
        connection.execute(statement)
    connection.commit()

    return connection
