"""Adapters module - Port implementations for different storage backends.

This package contains concrete implementations (adapters) for the repository
interfaces:
- memory: in-process key-value store
- sqlite: local SQLite key-value vault
- token_jar: remember-token storage
"""

from .memory import MemoryKeyValueStore
from .sqlite import SqliteKeyValueStore
from .token_jar import FileTokenJar, MemoryTokenJar

__all__ = [
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "FileTokenJar",
    "MemoryTokenJar",
]
