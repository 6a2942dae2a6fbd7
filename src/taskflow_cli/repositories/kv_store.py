"""Key-value store port.

TaskFlow keeps all of its state as JSON text under string keys, the way the
browser version kept it in ``localStorage``. Adapters live in
``taskflow_cli.adapters``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

NAMESPACE = "taskflow_"
GUEST_SCOPE = "guest"


class StorageKeys:
    """Literal key names for every logical record in the store."""

    USERS = "taskflow_users"
    USERS_BACKUP_PREFIX = "taskflow_users_backup_"
    CURRENT_SESSION = "taskflow_current_user"
    THEME = "taskflow_theme"

    @classmethod
    def users_backup(cls, day: date) -> str:
        return f"{cls.USERS_BACKUP_PREFIX}{day.isoformat()}"

    @staticmethod
    def tasks(scope: str) -> str:
        return f"taskflow_tasks_{scope}"

    @staticmethod
    def categories(scope: str) -> str:
        return f"taskflow_categories_{scope}"

    @staticmethod
    def pending_undo(scope: str) -> str:
        return f"taskflow_pending_undo_{scope}"

    @classmethod
    def is_identity_key(cls, key: str) -> bool:
        """Whether the key holds account or session data.

        Task and category partitions are keyed by user id but are not
        identity data.
        """
        return key in (cls.USERS, cls.CURRENT_SESSION) or key.startswith(
            cls.USERS_BACKUP_PREFIX
        )


class KeyValueStore(ABC):
    """Abstract durable string-keyed mapping.

    All operations are synchronous. ``set`` may fail with
    ``PersistenceError`` (``StorageQuotaExceeded`` when the capacity limit
    is reached); a failed ``set`` leaves the previous value in place.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored text, or None if the key is absent."""
        raise NotImplementedError("KeyValueStore.get() must be implemented by adapter")

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value.

        Raises:
            PersistenceError: If the write fails
        """
        raise NotImplementedError("KeyValueStore.set() must be implemented by adapter")

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key if present."""
        raise NotImplementedError(
            "KeyValueStore.remove() must be implemented by adapter"
        )

    @abstractmethod
    def list_keys(self) -> list[str]:
        """Return every key currently stored."""
        raise NotImplementedError(
            "KeyValueStore.list_keys() must be implemented by adapter"
        )

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def keys_with_prefix(self, prefix: str) -> list[str]:
        """Return the stored keys starting with prefix, sorted."""
        return sorted(key for key in self.list_keys() if key.startswith(prefix))
