"""Result values returned across component boundaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from taskflow_cli.exceptions import TaskflowError

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of an operation that may fail.

    Attributes:
        success: Whether the operation succeeded
        message: Short user-facing message
        value: Payload on success
        error: The failure, if any
    """

    success: bool
    message: str = ""
    value: T | None = None
    error: TaskflowError | None = field(default=None, repr=False)

    @classmethod
    def ok(cls, value: T | None = None, message: str = "") -> Result[T]:
        return cls(success=True, message=message, value=value)

    @classmethod
    def fail(cls, error: TaskflowError | str) -> Result[T]:
        if isinstance(error, str):
            return cls(success=False, message=error)
        return cls(success=False, message=error.message, error=error)

    def __bool__(self) -> bool:
        return self.success
