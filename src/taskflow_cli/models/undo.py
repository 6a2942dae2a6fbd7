"""Models for reversible mutations."""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum

from pydantic import Field

from taskflow_cli.models.base import TaskflowModel, UtcDatetime
from taskflow_cli.models.task import Task
from taskflow_cli.utils.id_utils import generate_id


class UndoKind(str, Enum):
    """Kind of reversible action."""

    COMPLETE = "complete"
    DELETE = "delete"


class UndoState(str, Enum):
    """Lifecycle of an undo window."""

    APPLIED = "applied"
    COMMITTED = "committed"
    REVERTED = "reverted"


class PendingUndo(TaskflowModel):
    """An applied mutation that can still be reverted.

    Attributes:
        id: Identifier of this undo window
        kind: Which action was applied
        task_id: Task the action applied to
        snapshot: Task as captured when the action was applied
        created_at: When the window opened
        expires_at: When the window closes
        state: Applied, committed or reverted
    """

    id: str = Field(default_factory=generate_id)
    kind: UndoKind
    task_id: str
    snapshot: Task
    created_at: UtcDatetime
    expires_at: UtcDatetime
    state: UndoState = UndoState.APPLIED

    @property
    def is_open(self) -> bool:
        return self.state == UndoState.APPLIED

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def seconds_left(self, now: datetime) -> int:
        return max(0, math.ceil((self.expires_at - now).total_seconds()))
