"""Shared base model for persisted TaskFlow records."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskflow_cli.utils.time_utils import ensure_utc

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class TaskflowModel(BaseModel):
    """Base model serialized with camelCase keys.

    Records written by earlier versions of the web app use camelCase
    (``firstName``, ``createdAt``); both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_storage(self) -> dict[str, Any]:
        """Dump to the JSON-compatible dict written to the key-value store."""
        return self.model_dump(mode="json", by_alias=True)
