"""Exception hierarchy for TaskFlow.

Components catch these at their own boundary and convert them into
``Result`` values or boolean save outcomes; none of them is expected to
reach the command layer unhandled.
"""

from __future__ import annotations


class TaskflowError(Exception):
    """Base exception for all TaskFlow errors."""

    def __init__(self, message: str = "", *, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(TaskflowError):
    """Raised when user input has the wrong shape or content."""


class CategoryInUseError(ValidationError):
    """Raised when a category is still referenced by tasks."""

    def __init__(self, category_id: str, task_count: int):
        super().__init__(
            f"Cannot delete category: {task_count} task(s) are using it"
        )
        self.category_id = category_id
        self.task_count = task_count


class AuthError(TaskflowError):
    """Raised when credentials do not match.

    The message never distinguishes an unknown email from a wrong password.
    """

    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(message)


class NotFoundError(TaskflowError):
    """Raised when a task, subtask or category does not exist."""


class PersistenceError(TaskflowError):
    """Raised when the key-value store cannot be read or written."""


class StorageQuotaExceeded(PersistenceError):
    """Raised when a write would exceed the store capacity."""


class CorruptionError(TaskflowError):
    """Raised when persisted data cannot be parsed into records."""
