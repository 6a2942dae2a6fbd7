"""Task, subtask and category models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from taskflow_cli.models.base import TaskflowModel, UtcDatetime
from taskflow_cli.utils.id_utils import generate_id
from taskflow_cli.utils.time_utils import utc_now

DEFAULT_CATEGORY = "personal"
DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY_COLOR = "#6366f1"


class Priority(str, Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_RANK = {Priority.HIGH.value: 3, Priority.MEDIUM.value: 2, Priority.LOW.value: 1}


def _blank_to_empty(value: Any) -> Any:
    return "" if value is None else value


class Subtask(TaskflowModel):
    """Checklist item owned by a task."""

    id: str = Field(default_factory=generate_id)
    title: str = ""
    completed: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def _none_title(cls, value: Any) -> Any:
        return _blank_to_empty(value)


class Task(TaskflowModel):
    """Task model representing a complete task entity.

    Attributes:
        id: Unique identifier for the task
        title: Task title
        description: Optional detailed description
        priority: "low", "medium" or "high"; other values are kept as-is
        category: Category id; dangling references are allowed
        due_date: Optional due timestamp
        completed: Completion status
        created_at: Creation timestamp
        updated_at: Last update timestamp, never earlier than created_at
        subtasks: Ordered checklist
        notes: Free-text notes
        recurring: Reserved for recurrence rules, currently unused
    """

    id: str
    title: str = ""
    description: str = ""
    priority: str = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY
    due_date: UtcDatetime | None = None
    completed: bool = False
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)
    subtasks: list[Subtask] = Field(default_factory=list)
    notes: str = ""
    recurring: Any = None

    @field_validator("id")
    @classmethod
    def _required_id(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("title", "description", "notes", mode="before")
    @classmethod
    def _none_text(cls, value: Any) -> Any:
        return _blank_to_empty(value)

    @field_validator("subtasks", mode="before")
    @classmethod
    def _none_subtasks(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("due_date", mode="before")
    @classmethod
    def _empty_due_date(cls, value: Any) -> Any:
        return None if value == "" else value

    @model_validator(mode="before")
    @classmethod
    def _fill_legacy_timestamps(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        created = data.get("createdAt", data.get("created_at"))
        if created and not (data.get("updatedAt") or data.get("updated_at")):
            data = {**data, "updatedAt": created}
        return data

    @model_validator(mode="after")
    def _updated_not_before_created(self) -> Task:
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
        return self

    def is_overdue(self, now: datetime) -> bool:
        """Incomplete and due strictly before ``now``."""
        return not self.completed and self.due_date is not None and self.due_date < now


class TaskCreate(TaskflowModel):
    """Model for creating a new task.

    Empty values fall back to the defaults the way the task form does.
    """

    title: str = ""
    description: str = ""
    priority: str = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY
    due_date: UtcDatetime | None = None
    subtasks: list[Subtask] = Field(default_factory=list)
    notes: str = ""
    recurring: Any = None

    @field_validator("title", "description", "notes", mode="before")
    @classmethod
    def _none_text(cls, value: Any) -> Any:
        return _blank_to_empty(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: Any) -> Any:
        return value or DEFAULT_PRIORITY

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        return value or DEFAULT_CATEGORY

    @field_validator("due_date", mode="before")
    @classmethod
    def _empty_due_date(cls, value: Any) -> Any:
        return value or None

    @field_validator("subtasks", mode="before")
    @classmethod
    def _none_subtasks(cls, value: Any) -> Any:
        return value or []


class TaskUpdate(TaskflowModel):
    """Partial update for an existing task.

    Only fields explicitly set are applied.
    """

    title: str | None = None
    description: str | None = None
    priority: str | None = None
    category: str | None = None
    due_date: UtcDatetime | None = None
    completed: bool | None = None
    subtasks: list[Subtask] | None = None
    notes: str | None = None
    recurring: Any = None


class TaskStats(TaskflowModel):
    """Aggregate counters for the progress panel."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    completion_rate: int = 0


class Category(TaskflowModel):
    """Category model.

    Attributes:
        id: Fixed id for built-ins, ``custom_`` prefixed for user-created ones
        name: Display name, unique ignoring case
        color: Hex color used for display
        is_custom: Whether the category was created by the user
    """

    id: str
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    is_custom: bool = False


class CategoryCreate(TaskflowModel):
    """Model for creating a custom category."""

    name: str
    color: str = DEFAULT_CATEGORY_COLOR

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value
