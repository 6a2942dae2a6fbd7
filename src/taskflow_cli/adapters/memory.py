"""In-memory key-value store."""

from __future__ import annotations

from taskflow_cli.exceptions import StorageQuotaExceeded
from taskflow_cli.repositories import KeyValueStore


def entry_size(key: str, value: str) -> int:
    """Bytes an entry counts against the quota."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with an optional capacity limit.

    Used as the test double and for throwaway sessions.
    """

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        quota_bytes: int | None = None,
    ):
        self._data: dict[str, str] = dict(initial or {})
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            current = self.used_bytes()
            previous = self._data.get(key)
            if previous is not None:
                current -= entry_size(key, previous)
            if current + entry_size(key, value) > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing '{key}' would exceed the {self.quota_bytes} byte quota"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self) -> list[str]:
        return list(self._data)

    def used_bytes(self) -> int:
        return sum(entry_size(k, v) for k, v in self._data.items())

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw contents, for assertions in tests."""
        return dict(self._data)
