"""Identifier generation and resolution for TaskFlow records."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskflow_cli.models import Task

USER_ID_PREFIX = "user_"
CUSTOM_CATEGORY_PREFIX = "custom_"


def generate_id() -> str:
    """Generate a new opaque identifier.

    Returns:
        32 character hex string
    """
    return uuid.uuid4().hex


def generate_user_id() -> str:
    """Generate an identifier for a user record."""
    return USER_ID_PREFIX + generate_id()


def generate_category_id() -> str:
    """Generate an identifier for a user-created category."""
    return CUSTOM_CATEGORY_PREFIX + generate_id()


def shorten_id(value: str, length: int = 8) -> str:
    """Get shortened version of an identifier for display."""
    return value[:length]


def resolve_task_id(id_or_prefix: str, tasks: Iterable[Task], min_length: int = 4) -> str:
    """Resolve a full task ID or a unique prefix to a full task ID.

    Args:
        id_or_prefix: Full ID or a prefix of at least ``min_length`` chars
        tasks: Tasks to search
        min_length: Minimum prefix length

    Returns:
        Full task ID

    Raises:
        ValueError: If the ID is too short, not found, or ambiguous
    """
    candidate = id_or_prefix.strip()
    tasks = list(tasks)

    for task in tasks:
        if task.id == candidate:
            return task.id

    if len(candidate) < min_length:
        raise ValueError(
            f"ID must be at least {min_length} characters. "
            f"Got: {candidate} ({len(candidate)} chars)"
        )

    matches = [task for task in tasks if task.id.startswith(candidate)]
    if not matches:
        raise ValueError(f"Task not found: {candidate}")

    if len(matches) > 1:
        listed = ", ".join(shorten_id(t.id) for t in matches[:5])
        if len(matches) > 5:
            listed += f", ... ({len(matches)} total)"
        raise ValueError(
            f"Ambiguous ID '{candidate}' matches {len(matches)} tasks: {listed}"
        )

    return matches[0].id
