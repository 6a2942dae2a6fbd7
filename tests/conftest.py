"""Shared test fixtures and configuration.

Provides an in-memory key-value store, a frozen clock and fully wired
components so that no test touches the real filesystem.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from taskflow_cli.adapters import MemoryKeyValueStore, MemoryTokenJar
from taskflow_cli.app import build_app
from taskflow_cli.models import AppConfig, RegistrationForm
from taskflow_cli.services.credential_store import CredentialStore
from taskflow_cli.services.record_repair import RecordRepairEngine
from taskflow_cli.services.session_manager import SessionManager
from taskflow_cli.services.task_store import TaskStore
from taskflow_cli.services.undo_service import MutationPipeline

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolate_log_dir(tmp_path):
    """Keep the rotating log file inside the test's temp directory."""
    import taskflow_cli.utils.logger as logger_mod

    with patch("taskflow_cli.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield
    logger_mod._logger = None
    app_logger = logging.getLogger("taskflow_cli")
    for handler in app_logger.handlers:
        handler.close()
    app_logger.handlers.clear()
    app_logger.propagate = True
    app_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Core components
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def kv_store():
    return MemoryKeyValueStore()


@pytest.fixture()
def token_jar():
    return MemoryTokenJar()


@pytest.fixture()
def session_manager(kv_store, token_jar, clock):
    return SessionManager(kv_store, token_jar, clock=clock)


@pytest.fixture()
def repair_engine(kv_store, token_jar):
    return RecordRepairEngine(kv_store, token_jar)


@pytest.fixture()
def credential_store(kv_store, session_manager, repair_engine, clock):
    store = CredentialStore(kv_store, session_manager, repair_engine, clock=clock)
    store.load()
    return store


@pytest.fixture()
def task_store(kv_store, clock):
    return TaskStore(kv_store, "user_test", clock=clock)


@pytest.fixture()
def empty_task_store(task_store):
    """Task store with the welcome task removed and nothing persisted."""
    task_store.tasks = []
    return task_store


@pytest.fixture()
def pipeline(empty_task_store, kv_store, clock):
    return MutationPipeline(empty_task_store, kv_store, clock=clock)


@pytest.fixture()
def make_form():
    """Factory for valid registration forms."""

    def _make(**overrides) -> RegistrationForm:
        data = {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "password": "Secret123!",
            "confirm_password": "Secret123!",
            "agree_terms": True,
        }
        data.update(overrides)
        if "password" in overrides and "confirm_password" not in overrides:
            data["confirm_password"] = overrides["password"]
        return RegistrationForm(**data)

    return _make


@pytest.fixture()
def taskflow_app(kv_store, token_jar, clock):
    """Fully wired application over in-memory storage."""
    return build_app(AppConfig(), kv_store=kv_store, token_jar=token_jar, clock=clock)


@pytest.fixture()
def logged_in_app(taskflow_app, make_form):
    """Application with a registered, logged-in user and an empty task list."""
    result = asyncio.run(taskflow_app.credentials.register(make_form()))
    assert result.success
    taskflow_app.refresh_scope()
    taskflow_app.tasks.tasks = []
    taskflow_app.tasks.save()
    return taskflow_app
