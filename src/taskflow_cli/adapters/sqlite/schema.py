"""SQLite schema for the local key-value vault."""

CREATE_KV_TABLE = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

ALL_TABLES = [CREATE_KV_TABLE]
