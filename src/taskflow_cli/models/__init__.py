"""TaskFlow domain models.

This package contains Pydantic models that represent the core domain entities
of TaskFlow. Persisted models serialize with camelCase keys so that data
written by the browser version of the app loads unchanged.
"""

from .base import TaskflowModel
from .config_models import AppConfig
from .export import ExportDocument
from .results import Result
from .task import (
    Category,
    CategoryCreate,
    Priority,
    Subtask,
    Task,
    TaskCreate,
    TaskStats,
    TaskUpdate,
)
from .undo import PendingUndo, UndoKind, UndoState
from .user import (
    PasswordStrength,
    Preferences,
    RegistrationForm,
    RememberToken,
    SessionIdentity,
    Theme,
    UserRecord,
)

__all__ = [
    "TaskflowModel",
    # Task models
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskStats",
    "Subtask",
    "Priority",
    # Category models
    "Category",
    "CategoryCreate",
    # User models
    "UserRecord",
    "SessionIdentity",
    "Preferences",
    "Theme",
    "RegistrationForm",
    "RememberToken",
    "PasswordStrength",
    # Undo models
    "PendingUndo",
    "UndoKind",
    "UndoState",
    # Misc
    "ExportDocument",
    "Result",
    "AppConfig",
]
