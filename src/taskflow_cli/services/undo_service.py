"""Mutation pipeline with a time-boxed undo window.

Completing or deleting a task applies and persists the change at once, then
opens an undo window. Only the most recent window is live; opening a new
one commits the previous one. A window closes when its deadline passes, when
its timer fires inside a running event loop, or when it is undone.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from taskflow_cli.exceptions import NotFoundError, PersistenceError
from taskflow_cli.models import PendingUndo, Result, Task, UndoKind, UndoState
from taskflow_cli.repositories import KeyValueStore, StorageKeys
from taskflow_cli.services.task_store import TaskStore
from taskflow_cli.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

DeleteConfirm = Callable[[Task, str], bool]


def delete_confirmation_message(task: Task, now: datetime) -> tuple[str, str]:
    """Confirmation text and severity for deleting a task."""
    if task.is_overdue(now):
        return (
            "This task is overdue and incomplete. Are you sure you want to delete it?",
            "warning",
        )
    if task.completed:
        return (
            "This task is already completed. Are you sure you want to delete it?",
            "info",
        )
    return "Are you sure you want to delete this task?", "danger"


class CancellationToken:
    """Cancels the timer armed for one undo window."""

    def __init__(self):
        self._cancelled = False
        self._handle: asyncio.TimerHandle | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def attach(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle
        if self._cancelled:
            handle.cancel()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class MutationPipeline:
    """Applies complete and delete operations with an undo window."""

    def __init__(
        self,
        task_store: TaskStore,
        kv_store: KeyValueStore,
        *,
        complete_seconds: int = 8,
        delete_seconds: int = 10,
        clock: Clock = utc_now,
    ):
        self.task_store = task_store
        self.kv_store = kv_store
        self.complete_seconds = complete_seconds
        self.delete_seconds = delete_seconds
        self.clock = clock
        self._token: CancellationToken | None = None
        self._pending = self._read_pending()

    @property
    def storage_key(self) -> str:
        return StorageKeys.pending_undo(self.task_store.scope)

    @property
    def pending(self) -> PendingUndo | None:
        """The live undo window, committing it first if its deadline passed."""
        if self._pending is None or not self._pending.is_open:
            return None
        if self._pending.is_expired(self.clock()):
            self.commit()
            return None
        return self._pending

    async def toggle_task(self, task_id: str) -> Result[Task]:
        """Toggle completion; completing a task opens an undo window."""
        task = await self.task_store.toggle_task(task_id)
        if task is None:
            return Result.fail(NotFoundError("Task not found"))
        if not task.completed:
            return Result.ok(task, "Task marked as pending")
        self._open(UndoKind.COMPLETE, task, self.complete_seconds)
        return Result.ok(task, "Task completed!")

    async def delete_task(self, task_id: str, confirm: DeleteConfirm | None = None) -> Result[Task]:
        """Delete a task after confirmation and open an undo window.

        Args:
            task_id: Task to delete
            confirm: Called with the task and the confirmation text;
                returning False cancels the deletion

        Returns:
            Result carrying the snapshot of the deleted task
        """
        task = self.task_store.get_task(task_id)
        if task is None:
            return Result.fail(NotFoundError("Task not found"))

        message, _severity = delete_confirmation_message(task, self.clock())
        if confirm is not None and not confirm(task, message):
            return Result.fail("Deletion cancelled")

        snapshot = task.model_copy(deep=True)
        if not await self.task_store.delete_task(task_id):
            return Result.fail("Error deleting task")
        self._open(UndoKind.DELETE, snapshot, self.delete_seconds)
        return Result.ok(snapshot, "Task deleted")

    async def undo(self, undo_id: str | None = None) -> Result[Task]:
        """Revert the live window.

        Args:
            undo_id: Window to revert; None reverts whichever is live

        Returns:
            Result carrying the task as it is after the revert
        """
        pending = self.pending
        if pending is None:
            return Result.fail("Nothing to undo")
        if undo_id is not None and pending.id != undo_id:
            return Result.fail("This undo is no longer available")

        if pending.kind == UndoKind.COMPLETE:
            task = self.task_store.get_task(pending.task_id)
            if task is None or not task.completed:
                self.commit()
                return Result.fail("Task is no longer completed")
            task = await self.task_store.toggle_task(pending.task_id)
            message = "Task undone!"
        else:
            task = await self.task_store.restore_task(pending.snapshot)
            if task is None:
                self.commit()
                return Result.fail("Error restoring task")
            message = "Task restored!"

        self._close(UndoState.REVERTED)
        logger.info("reverted %s of task %s", pending.kind.value, pending.task_id)
        return Result.ok(task, message)

    def commit(self) -> None:
        """Close the live window, leaving the mutation in place."""
        if self._pending is not None and self._pending.is_open:
            logger.debug("committed %s of task %s", self._pending.kind.value, self._pending.task_id)
            self._close(UndoState.COMMITTED)

    def seconds_left(self) -> int:
        pending = self.pending
        return pending.seconds_left(self.clock()) if pending else 0

    def _open(self, kind: UndoKind, task: Task, seconds: int) -> PendingUndo:
        self.commit()
        now = self.clock()
        pending = PendingUndo(
            kind=kind,
            task_id=task.id,
            snapshot=task.model_copy(deep=True),
            created_at=now,
            expires_at=now + timedelta(seconds=seconds),
        )
        self._pending = pending
        self._write_pending(pending)
        self._arm_timer(pending, seconds)
        return pending

    def _close(self, state: UndoState) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._pending.state = state
        try:
            self.kv_store.remove(self.storage_key)
        except PersistenceError as e:
            logger.error("error clearing undo window: %s", e)

    def _arm_timer(self, pending: PendingUndo, seconds: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        token = CancellationToken()
        token.attach(loop.call_later(seconds, self._on_timeout, pending.id))
        self._token = token

    def _on_timeout(self, undo_id: str) -> None:
        if self._pending is not None and self._pending.id == undo_id:
            self.commit()

    def _read_pending(self) -> PendingUndo | None:
        try:
            raw = self.kv_store.get(self.storage_key)
        except PersistenceError as e:
            logger.error("error reading undo window: %s", e)
            return None
        if raw is None:
            return None
        try:
            return PendingUndo.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.warning("discarding unreadable undo window: %s", e)
            return None

    def _write_pending(self, pending: PendingUndo) -> None:
        try:
            self.kv_store.set(self.storage_key, pending.model_dump_json(by_alias=True))
        except PersistenceError as e:
            logger.warning("undo window not persisted: %s", e)
