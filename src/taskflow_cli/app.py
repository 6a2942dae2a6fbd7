"""Application container.

Builds every component explicitly and wires them together. Nothing in the
core looks components up globally; the command layer receives the
container through the Typer context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from taskflow_cli.adapters import FileTokenJar, SqliteKeyValueStore
from taskflow_cli.models import AppConfig
from taskflow_cli.repositories import KeyValueStore, TokenJar
from taskflow_cli.services.credential_store import CredentialStore
from taskflow_cli.services.record_repair import HealReport, RecordRepairEngine
from taskflow_cli.services.session_manager import SessionManager
from taskflow_cli.services.task_store import TaskStore
from taskflow_cli.services.theme_service import ThemeService
from taskflow_cli.services.undo_service import MutationPipeline
from taskflow_cli.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class TaskflowApp:
    """Wired components of one running application."""

    config: AppConfig
    kv_store: KeyValueStore
    token_jar: TokenJar
    sessions: SessionManager
    credentials: CredentialStore
    tasks: TaskStore
    pipeline: MutationPipeline
    theme: ThemeService
    heal_report: HealReport
    clock: Clock = utc_now

    @property
    def notice(self) -> str | None:
        """One-time message produced by start-up repair."""
        return self.heal_report.notice

    def refresh_scope(self) -> None:
        """Point the task partition at the current session after login or logout."""
        scope = self.sessions.scope
        if scope == self.tasks.scope:
            return
        self.tasks.switch_scope(scope)
        self.pipeline = _build_pipeline(self.config, self.tasks, self.kv_store, self.clock)


def _build_pipeline(
    config: AppConfig, tasks: TaskStore, kv_store: KeyValueStore, clock: Clock
) -> MutationPipeline:
    return MutationPipeline(
        tasks,
        kv_store,
        complete_seconds=config.undo.complete_seconds,
        delete_seconds=config.undo.delete_seconds,
        clock=clock,
    )


def build_app(
    config: AppConfig,
    kv_store: KeyValueStore | None = None,
    token_jar: TokenJar | None = None,
    clock: Clock | None = None,
) -> TaskflowApp:
    """Construct the application.

    Runs record repair on the user collection, restores a remembered
    session, and loads the task partition of whoever is logged in.

    Args:
        config: Application configuration
        kv_store: Key-value store; defaults to SQLite at the configured path
        token_jar: Remember-token jar; defaults to the credentials directory
        clock: Source of the current time

    Returns:
        Wired TaskflowApp
    """
    clock = clock or utc_now
    if kv_store is None:
        kv_store = SqliteKeyValueStore(config.storage.path, quota_bytes=config.storage.quota_bytes)
    if token_jar is None:
        from taskflow_cli.services.config_service import get_config_service

        token_jar = FileTokenJar(get_config_service().remember_token_path)

    sessions = SessionManager(
        kv_store, token_jar, remember_days=config.auth.remember_days, clock=clock
    )
    repair = RecordRepairEngine(kv_store, token_jar)
    credentials = CredentialStore(
        kv_store,
        sessions,
        repair,
        clock=clock,
        backup_retention_days=config.auth.backup_retention_days,
        allow_legacy_plaintext=config.auth.allow_legacy_plaintext,
        plaintext_threshold=config.auth.plaintext_threshold,
    )
    heal_report = credentials.initialize()
    if heal_report.healed:
        logger.info("start-up repair removed %d key(s)", len(heal_report.removed_keys))

    sessions.restore()

    tasks = TaskStore(kv_store, sessions.scope, clock=clock)
    return TaskflowApp(
        config=config,
        kv_store=kv_store,
        token_jar=token_jar,
        sessions=sessions,
        credentials=credentials,
        tasks=tasks,
        pipeline=_build_pipeline(config, tasks, kv_store, clock),
        theme=ThemeService(kv_store),
        heal_report=heal_report,
        clock=clock,
    )
