"""Export document model."""

from __future__ import annotations

from pydantic import Field

from taskflow_cli.models.base import TaskflowModel, UtcDatetime
from taskflow_cli.models.user import SessionIdentity, UserRecord

EXPORT_VERSION = "1.0"


class ExportDocument(TaskflowModel):
    """Downloadable snapshot of the user collection and active session."""

    users: list[UserRecord] = Field(default_factory=list)
    current_session: SessionIdentity | None = None
    export_date: UtcDatetime
    version: str = EXPORT_VERSION
