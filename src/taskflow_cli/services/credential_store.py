"""Credential store.

Owns the user collection: loading through the record repair engine, saving
with dated backups, registration, login with credential-format migration,
and export/import of the whole collection.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta

from taskflow_cli.exceptions import (
    AuthError,
    PersistenceError,
    TaskflowError,
    ValidationError,
)
from taskflow_cli.models import (
    ExportDocument,
    RegistrationForm,
    Result,
    SessionIdentity,
    UserRecord,
)
from taskflow_cli.repositories import NAMESPACE, KeyValueStore, StorageKeys
from taskflow_cli.services.password_service import (
    hash_password,
    matches_legacy_digest,
    validate_registration,
    verify_password,
)
from taskflow_cli.services.record_repair import (
    HealReport,
    ParsedCollection,
    RecordRepairEngine,
    serialize_collection,
)
from taskflow_cli.services.session_manager import SessionManager
from taskflow_cli.utils.id_utils import generate_user_id
from taskflow_cli.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

EXPORT_FILE_PREFIX = "taskflow_backup_"


class CredentialStore:
    """Service for account management.

    The in-memory ``users`` list is the source of truth between saves; a
    failed save leaves both the list and the previously persisted snapshot
    untouched.
    """

    def __init__(
        self,
        kv_store: KeyValueStore,
        session_manager: SessionManager,
        repair_engine: RecordRepairEngine,
        *,
        clock: Clock = utc_now,
        backup_retention_days: int = 7,
        allow_legacy_plaintext: bool = True,
        plaintext_threshold: int = 50,
    ):
        self.kv_store = kv_store
        self.session_manager = session_manager
        self.repair_engine = repair_engine
        self.clock = clock
        self.backup_retention_days = backup_retention_days
        self.allow_legacy_plaintext = allow_legacy_plaintext
        self.plaintext_threshold = plaintext_threshold
        self.users: list[UserRecord] = []

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    def load(self) -> ParsedCollection[UserRecord]:
        """Load the collection from storage, recovering from backup if needed."""
        parsed = self.repair_engine.load_users()
        self.users = list(parsed.records)
        return parsed

    def initialize(self) -> HealReport:
        """Load the collection and run the start-up self repair.

        After a wipe an empty collection is saved so the next start is not
        mistaken for a first run.
        """
        parsed = self.load()
        report = self.repair_engine.auto_heal(parsed)
        if report.healed:
            self.users = []
            self.session_manager.reload()
            self.save()
        return report

    def save(self) -> bool:
        """Persist the collection, backing up the previous snapshot first.

        Returns:
            True if the collection was written and verified
        """
        self.create_backup()
        data = serialize_collection(self.users)
        try:
            self.kv_store.set(StorageKeys.USERS, data)
            if self.kv_store.get(StorageKeys.USERS) != data:
                raise PersistenceError("Data verification failed after save")
        except PersistenceError as e:
            logger.error("error saving users: %s", e)
            return False

        logger.info("saved %d user(s)", len(self.users))
        return True

    def create_backup(self) -> str | None:
        """Copy the persisted collection to today's backup key.

        Returns:
            The backup key, or None when there was nothing to back up
        """
        try:
            current = self.kv_store.get(StorageKeys.USERS)
            if current is None:
                return None
            if not self.repair_engine.load(current).ok:
                logger.warning("not backing up unreadable user collection")
                return None
            backup_key = StorageKeys.users_backup(self.clock().date())
            self.kv_store.set(backup_key, current)
        except PersistenceError as e:
            logger.error("error creating backup: %s", e)
            return None

        self.cleanup_old_backups()
        return backup_key

    def cleanup_old_backups(self) -> list[str]:
        """Remove backups older than the retention period."""
        cutoff = self.clock().date() - timedelta(days=self.backup_retention_days)
        removed = []
        try:
            for key in self.list_backups():
                day = _backup_date(key)
                if day is None:
                    logger.warning("skipping backup with unreadable date: %s", key)
                    continue
                if day < cutoff:
                    self.kv_store.remove(key)
                    removed.append(key)
                    logger.info("removed old backup: %s", key)
        except PersistenceError as e:
            logger.error("error cleaning up backups: %s", e)
        return removed

    def list_backups(self) -> list[str]:
        """Backup keys, oldest first."""
        return self.kv_store.keys_with_prefix(StorageKeys.USERS_BACKUP_PREFIX)

    def recover_from_backup(self) -> Result[int]:
        """Replace the collection with the most recent backup and save it."""
        recovered = self.repair_engine.recover_from_backup()
        if recovered.source_key is None:
            return Result.fail("No backup found")
        self.users = list(recovered.records)
        if not self.save():
            return Result.fail(PersistenceError("Failed to save recovered users"))
        return Result.ok(
            len(self.users),
            f"Recovered {len(self.users)} user(s) from {recovered.source_key}",
        )

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> UserRecord | None:
        normalized = email.strip().lower()
        for user in self.users:
            if user.email.lower() == normalized:
                return user
        return None

    async def register(self, form: RegistrationForm) -> Result[SessionIdentity]:
        """Create an account and log into it.

        An existing account with the same email is replaced rather than
        rejected.
        """
        problems = validate_registration(form)
        if problems:
            return Result.fail(
                ValidationError(
                    "Please fill in all required fields correctly.", details=problems
                )
            )

        email = form.email.strip().lower()
        previous = list(self.users)
        if self.find_by_email(email) is not None:
            logger.warning("replacing existing account registered with %s", email)
            self.users = [u for u in self.users if u.email.lower() != email]

        self.users.append(
            UserRecord(
                id=generate_user_id(),
                first_name=form.first_name.strip(),
                last_name=form.last_name.strip(),
                email=email,
                password=hash_password(form.password),
                created_at=self.clock(),
            )
        )
        if not self.save():
            self.users = previous
            return Result.fail(
                PersistenceError("Failed to create account. Please try again.")
            )

        return await self.login(email, form.password)

    async def login(
        self, email: str, password: str, remember_me: bool = False
    ) -> Result[SessionIdentity]:
        """Authenticate and open a session.

        Unknown email and wrong password produce the same failure.
        """
        if not email or not password:
            return Result.fail(ValidationError("Please fill in all fields"))

        user = self.find_by_email(email)
        if user is None:
            logger.info("login failed: no user for %s", email.strip().lower())
            return Result.fail(AuthError())

        try:
            accepted = await self._check_password(user, password)
        except TaskflowError as e:
            logger.error("login error: %s", e)
            return Result.fail("An error occurred during login. Please try again.")

        if not accepted:
            logger.info("login failed: invalid password for %s", user.email)
            return Result.fail(AuthError())

        user.last_login = self.clock()
        self.save()

        identity = user.to_session()
        if remember_me and self.session_manager.remember(identity) is None:
            return Result.fail(
                PersistenceError("Could not remember this login. Please try again.")
            )
        if not self.session_manager.set_session(identity):
            self.session_manager.forget()
            return Result.fail(
                PersistenceError("Could not start a session. Please try again.")
            )

        logger.info("login successful for %s", user.email)
        return Result.ok(identity, "Login successful!")

    async def _check_password(self, user: UserRecord, password: str) -> bool:
        # Current digest format.
        if verify_password(password, user.password):
            return True

        # Digest stored in an older encoding.
        if matches_legacy_digest(password, user.password):
            logger.info("password for %s verified via legacy digest encoding", user.email)
            return True

        # Plaintext from the earliest data format; upgraded on success.
        if (
            self.allow_legacy_plaintext
            and len(user.password) < self.plaintext_threshold
            and user.password == password
        ):
            logger.warning(
                "password for %s verified as plaintext, upgrading to digest", user.email
            )
            user.password = hash_password(password)
            self.save()
            return True

        return False

    def set_session(self, identity: SessionIdentity | None) -> bool:
        return self.session_manager.set_session(identity)

    def logout(self) -> bool:
        return self.session_manager.logout()

    # ------------------------------------------------------------------
    # Export, import and maintenance
    # ------------------------------------------------------------------

    def export_data(self) -> ExportDocument:
        """Snapshot of the collection and the active session."""
        return ExportDocument(
            users=[user.model_copy(deep=True) for user in self.users],
            current_session=self.session_manager.current,
            export_date=self.clock(),
        )

    def export_filename(self) -> str:
        return f"{EXPORT_FILE_PREFIX}{self.clock().date().isoformat()}.json"

    def import_data(self, json_data: str) -> Result[int]:
        """Replace the collection with the users of an export document."""
        try:
            data = json.loads(json_data)
        except json.JSONDecodeError as e:
            logger.error("error importing user data: %s", e)
            return Result.fail(ValidationError("Error importing data"))

        if not isinstance(data, dict) or not isinstance(data.get("users"), list):
            return Result.fail(ValidationError("Invalid data format"))

        parsed = self.repair_engine.load(json.dumps(data["users"]))
        self.users = list(parsed.records)
        if not self.save():
            return Result.fail(PersistenceError("Failed to save imported users"))

        message = f"Imported {len(self.users)} users successfully"
        if parsed.dropped:
            message += f" ({parsed.dropped} invalid record(s) skipped)"
        logger.info(message)
        return Result.ok(len(self.users), message)

    def list_users(self) -> list[dict[str, str]]:
        """Name and email of every account, never the credential."""
        return [
            {"id": u.id, "name": f"{u.first_name} {u.last_name}", "email": u.email}
            for u in self.users
        ]

    def clear_corrupted_user_data(self) -> bool:
        """Remove the collection and its backups, then reload."""
        try:
            self.kv_store.remove(StorageKeys.USERS)
            for key in self.list_backups():
                self.kv_store.remove(key)
                logger.info("removed backup: %s", key)
        except PersistenceError as e:
            logger.error("error clearing corrupted user data: %s", e)
            return False
        self.load()
        logger.info("user data cleared, %d user(s) remain", len(self.users))
        return True

    def reset_all_data(self) -> bool:
        """Remove every TaskFlow key and the remember token."""
        try:
            for key in self.kv_store.keys_with_prefix(NAMESPACE):
                self.kv_store.remove(key)
        except PersistenceError as e:
            logger.error("error resetting data: %s", e)
            return False
        forgotten = self.session_manager.forget()
        self.session_manager.reload()
        self.users = []
        logger.info("all TaskFlow data has been reset")
        return forgotten


def _backup_date(key: str) -> date | None:
    try:
        return date.fromisoformat(key.removeprefix(StorageKeys.USERS_BACKUP_PREFIX))
    except ValueError:
        return None
