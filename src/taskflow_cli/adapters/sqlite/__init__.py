"""SQLite adapter module - Local database storage implementation."""

from taskflow_cli.adapters.sqlite.connection import default_db_path, get_connection
from taskflow_cli.adapters.sqlite.kv_store import SqliteKeyValueStore

__all__ = [
    "SqliteKeyValueStore",
    "default_db_path",
    "get_connection",
]
