"""Record repair engine.

Makes the load path from the key-value store resilient to missing data,
non-list payloads, partially shaped records and first-run bootstrap.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from taskflow_cli.exceptions import CorruptionError, PersistenceError
from taskflow_cli.models import TaskflowModel, UserRecord
from taskflow_cli.repositories import KeyValueStore, StorageKeys, TokenJar

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class ParsedCollection(Generic[M]):
    """Records parsed from stored text.

    Attributes:
        records: Well-formed records, in stored order
        dropped: Number of malformed elements filtered out
        raw_present: Whether the storage key existed at all
        error: Set when the payload could not be used at all
        source_key: Key the records were finally read from
        from_backup: Whether the records came from a backup snapshot
    """

    records: list[M] = field(default_factory=list)
    dropped: int = 0
    raw_present: bool = False
    error: CorruptionError | None = None
    source_key: str | None = None
    from_backup: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_malformed(self) -> bool:
        return self.dropped > 0

    @property
    def corrupted(self) -> bool:
        """Malformed records reached the load through a backup snapshot.

        Elements dropped from the primary payload are filtered on load and
        leave the remaining records usable.
        """
        return self.from_backup and self.has_malformed


@dataclass
class HealReport:
    """Outcome of the start-up self repair."""

    healed: bool = False
    first_run: bool = False
    removed_keys: list[str] = field(default_factory=list)

    @property
    def notice(self) -> str | None:
        if self.first_run:
            return "System initialized. You can now create accounts!"
        return None


def parse_collection(raw: str | None, model: type[M]) -> ParsedCollection[M]:
    """Parse stored text into a list of validated records.

    Never raises: unparsable or non-list payloads produce an empty
    collection with ``error`` set, and malformed elements are dropped and
    counted.
    """
    if raw is None:
        return ParsedCollection()

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        return ParsedCollection(
            raw_present=True, error=CorruptionError(f"Stored data is not JSON: {e}")
        )

    if not isinstance(payload, list):
        return ParsedCollection(
            raw_present=True,
            error=CorruptionError(
                f"Expected a list of records, got {type(payload).__name__}"
            ),
        )

    records: list[M] = []
    dropped = 0
    for item in payload:
        if not isinstance(item, dict):
            dropped += 1
            continue
        try:
            records.append(model.model_validate(item))
        except PydanticValidationError:
            dropped += 1

    if dropped:
        logger.warning(
            "filtered out %d invalid %s record(s)", dropped, model.__name__
        )
    return ParsedCollection(records=records, dropped=dropped, raw_present=True)


def serialize_collection(records: list[TaskflowModel]) -> str:
    """Canonical JSON text for a list of records."""
    return json.dumps([record.to_storage() for record in records])


class RecordRepairEngine:
    """Loads, recovers and, when needed, wipes the user collection."""

    def __init__(self, kv_store: KeyValueStore, token_jar: TokenJar):
        self.kv_store = kv_store
        self.token_jar = token_jar

    def load(self, raw: str | None) -> ParsedCollection[UserRecord]:
        """Parse a raw users payload."""
        return parse_collection(raw, UserRecord)

    def load_users(self) -> ParsedCollection[UserRecord]:
        """Load the primary user collection, falling back to backups.

        Returns:
            Parsed collection. When the primary payload is unusable the
            records come from the most recent backup (or are empty) and
            ``error`` still describes the primary failure.
        """
        try:
            raw = self.kv_store.get(StorageKeys.USERS)
        except PersistenceError as e:
            logger.error("could not read user collection: %s", e)
            parsed = ParsedCollection[UserRecord](
                raw_present=True, error=CorruptionError(str(e))
            )
        else:
            parsed = self.load(raw)
            parsed.source_key = StorageKeys.USERS

        if parsed.ok:
            if parsed.raw_present:
                logger.info("loaded %d valid user(s)", len(parsed.records))
            else:
                logger.info("no users stored, starting fresh")
            return parsed

        logger.error("error loading users: %s", parsed.error)
        recovered = self.recover_from_backup()
        parsed.records = recovered.records
        parsed.dropped = recovered.dropped
        parsed.source_key = recovered.source_key
        parsed.from_backup = recovered.source_key is not None
        return parsed

    def recover_from_backup(self) -> ParsedCollection[UserRecord]:
        """Return the contents of the most recent dated backup.

        Backup keys end in an ISO date, so the lexicographically last key is
        the newest. Returns an empty collection when there is no usable
        backup.
        """
        try:
            backup_keys = self.kv_store.keys_with_prefix(StorageKeys.USERS_BACKUP_PREFIX)
            if not backup_keys:
                logger.info("no backup found")
                return ParsedCollection()

            latest = backup_keys[-1]
            parsed = self.load(self.kv_store.get(latest))
        except PersistenceError as e:
            logger.error("error loading backup: %s", e)
            return ParsedCollection()

        if not parsed.ok:
            logger.error("backup %s is unusable: %s", latest, parsed.error)
            return ParsedCollection()

        parsed.source_key = latest
        logger.info("recovered %d user(s) from backup %s", len(parsed.records), latest)
        return parsed

    def auto_heal(self, parsed: ParsedCollection[UserRecord]) -> HealReport:
        """Wipe identity data when it is corrupted or was never written.

        Triggers when the collection recovered from a backup had malformed
        records, or when it is empty and the users key does not exist at all
        (first run). Malformed elements in the primary payload are already
        filtered out and never trigger it, and neither does an empty list
        stored by a returning user.
        """
        first_run = not parsed.records and not parsed.raw_present
        if not (parsed.corrupted or first_run):
            logger.debug("no corrupted data found, keeping %d user(s)", len(parsed.records))
            return HealReport()

        if parsed.corrupted:
            logger.warning("corrupted user data detected, clearing identity data")
        else:
            logger.info("first run, initializing identity data")

        removed = self.wipe_identity_data()
        parsed.records = []
        parsed.dropped = 0
        parsed.raw_present = False
        return HealReport(healed=True, first_run=first_run, removed_keys=removed)

    def wipe_identity_data(self) -> list[str]:
        """Remove users, backups, the session pointer and the remember token."""
        removed = []
        targets = {StorageKeys.USERS, StorageKeys.CURRENT_SESSION}
        try:
            targets.update(
                key for key in self.kv_store.list_keys() if StorageKeys.is_identity_key(key)
            )
            for key in sorted(targets):
                if self.kv_store.contains(key):
                    removed.append(key)
                self.kv_store.remove(key)
        except PersistenceError as e:
            logger.error("error clearing identity data: %s", e)
        try:
            self.token_jar.clear()
        except PersistenceError as e:
            logger.error("error clearing remember token: %s", e)
        for key in removed:
            logger.info("removed %s", key)
        return removed
