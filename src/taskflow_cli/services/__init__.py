"""Services layer - business logic over the key-value store."""

from .credential_store import CredentialStore
from .record_repair import RecordRepairEngine
from .session_manager import SessionManager
from .task_store import TaskStore
from .theme_service import ThemeService
from .undo_service import MutationPipeline

__all__ = [
    "CredentialStore",
    "MutationPipeline",
    "RecordRepairEngine",
    "SessionManager",
    "TaskStore",
    "ThemeService",
]
