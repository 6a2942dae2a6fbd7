"""Task store - tasks and categories of one partition.

The store keeps an ordered in-memory collection and writes a full snapshot
of tasks and categories after every mutation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from typing import Any

from taskflow_cli.exceptions import (
    CategoryInUseError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from taskflow_cli.models import (
    Category,
    CategoryCreate,
    Result,
    Subtask,
    Task,
    TaskCreate,
    TaskStats,
    TaskUpdate,
)
from taskflow_cli.models.task import DEFAULT_CATEGORY, DEFAULT_PRIORITY, PRIORITY_RANK
from taskflow_cli.repositories import GUEST_SCOPE, KeyValueStore, StorageKeys
from taskflow_cli.services.record_repair import parse_collection, serialize_collection
from taskflow_cli.utils.id_utils import generate_category_id, generate_id
from taskflow_cli.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

WELCOME_TITLE = "Welcome to TaskFlow!"
WELCOME_DESCRIPTION = "This is your first task. Click to edit or mark as complete."

DEFAULT_CATEGORIES = (
    ("personal", "Personal", "#6366f1"),
    ("work", "Work", "#10b981"),
    ("shopping", "Shopping", "#f59e0b"),
    ("health", "Health", "#ef4444"),
    ("learning", "Learning", "#8b5cf6"),
)

SORT_KEYS = {
    "title": "title",
    "priority": "priority",
    "dueDate": "due_date",
    "due_date": "due_date",
    "due": "due_date",
    "createdAt": "created_at",
    "created_at": "created_at",
    "created": "created_at",
}

# Fields a partial update may explicitly clear.
CLEARABLE_FIELDS = {"due_date", "recurring"}

ConfirmCallback = Callable[[Category], bool]


def default_categories() -> list[Category]:
    return [Category(id=cid, name=name, color=color) for cid, name, color in DEFAULT_CATEGORIES]


def _sort_value(task: Task, field: str) -> Any:
    if field == "title":
        return task.title.lower()
    if field == "priority":
        return PRIORITY_RANK.get(task.priority, 0)
    if field == "due_date":
        return task.due_date.timestamp() if task.due_date else 0
    return task.created_at.timestamp()


class TaskStore:
    """Owns the task and category collections of a single scope.

    Mutations apply to memory first and are then persisted; a failed write
    is reported through ``last_save_ok`` and leaves memory authoritative.
    """

    def __init__(self, kv_store: KeyValueStore, scope: str = GUEST_SCOPE, *, clock: Clock = utc_now):
        """Initialize the store and load the partition.

        Args:
            kv_store: Key-value store holding the partition
            scope: User id, or the guest partition
            clock: Source of the current time
        """
        self.kv_store = kv_store
        self.clock = clock
        self.scope = scope
        self.tasks: list[Task] = []
        self.categories: list[Category] = []
        self.last_save_ok = True
        self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read the partition, seeding defaults for a brand-new one."""
        self.tasks = self._load_collection(StorageKeys.tasks(self.scope), Task, self._default_tasks)
        self.categories = self._load_collection(
            StorageKeys.categories(self.scope), Category, default_categories
        )
        logger.debug(
            "loaded %d task(s) and %d categories for scope %s",
            len(self.tasks),
            len(self.categories),
            self.scope,
        )

    def switch_scope(self, scope: str) -> None:
        """Point the store at another partition. Data is never merged."""
        if scope == self.scope:
            return
        self.scope = scope
        self.load()

    def save(self) -> bool:
        """Write a full snapshot of tasks and categories.

        Returns:
            True if both collections were written
        """
        try:
            self.kv_store.set(StorageKeys.tasks(self.scope), serialize_collection(self.tasks))
            self.kv_store.set(
                StorageKeys.categories(self.scope), serialize_collection(self.categories)
            )
        except PersistenceError as e:
            logger.error("error saving tasks for scope %s: %s", self.scope, e)
            self.last_save_ok = False
            return False
        self.last_save_ok = True
        return True

    def _load_collection(self, key: str, model: type, defaults: Callable[[], list]) -> list:
        try:
            raw = self.kv_store.get(key)
        except PersistenceError as e:
            logger.error("error loading %s: %s", key, e)
            return defaults()

        if raw is None:
            return defaults()
        parsed = parse_collection(raw, model)
        if not parsed.ok:
            logger.error("error loading %s: %s", key, parsed.error)
            return defaults()
        return parsed.records

    def _default_tasks(self) -> list[Task]:
        now = self.clock()
        return [
            Task(
                id=generate_id(),
                title=WELCOME_TITLE,
                description=WELCOME_DESCRIPTION,
                priority=DEFAULT_PRIORITY,
                category=DEFAULT_CATEGORY,
                created_at=now,
                updated_at=now,
            )
        ]

    # ------------------------------------------------------------------
    # Task operations
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    async def add_task(self, task_data: TaskCreate) -> Task:
        """Create a task and append it to the collection.

        Args:
            task_data: Task fields; empty priority and category use defaults

        Returns:
            Created Task object
        """
        now = self.clock()
        task = Task(
            id=generate_id(),
            **task_data.model_dump(),
            completed=False,
            created_at=now,
            updated_at=now,
        )
        self.tasks.append(task)
        self.save()
        return task

    async def update_task(self, task_id: str, updates: TaskUpdate) -> Task | None:
        """Apply a partial update.

        Only fields set on ``updates`` change. ``None`` clears the due date
        and the recurrence placeholder and is ignored for other fields.

        Returns:
            Updated Task object, or None if the task does not exist
        """
        index = self._index_of(task_id)
        if index is None:
            return None

        changes = {
            name: value
            for name, value in updates.model_dump(exclude_unset=True).items()
            if value is not None or name in CLEARABLE_FIELDS
        }
        current = self.tasks[index]
        updated = Task.model_validate(
            {**current.model_dump(), **changes, "updated_at": self.clock()}
        )
        self.tasks[index] = updated
        self.save()
        return updated

    async def delete_task(self, task_id: str) -> bool:
        index = self._index_of(task_id)
        if index is None:
            return False
        del self.tasks[index]
        self.save()
        return True

    async def toggle_task(self, task_id: str) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        task.completed = not task.completed
        self._touch(task)
        self.save()
        return task

    async def toggle_subtask(self, subtask_id: str) -> tuple[Task, Subtask] | None:
        """Flip a subtask, searching every task for its id."""
        for task in self.tasks:
            for subtask in task.subtasks:
                if subtask.id == subtask_id:
                    subtask.completed = not subtask.completed
                    self._touch(task)
                    self.save()
                    return task, subtask
        return None

    async def add_subtask(self, task_id: str, title: str) -> Subtask | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        subtask = Subtask(title=title)
        task.subtasks.append(subtask)
        self._touch(task)
        self.save()
        return subtask

    async def duplicate_task(self, task_id: str) -> Task | None:
        """Copy a task under a fresh id with a " (Copy)" title suffix.

        The copy starts incomplete with new timestamps; its subtasks get
        fresh ids so that toggling one never affects the original.
        """
        original = self.get_task(task_id)
        if original is None:
            return None

        now = self.clock()
        duplicate = original.model_copy(
            deep=True,
            update={
                "id": generate_id(),
                "title": f"{original.title} (Copy)",
                "completed": False,
                "created_at": now,
                "updated_at": now,
            },
        )
        for subtask in duplicate.subtasks:
            subtask.id = generate_id()
        self.tasks.append(duplicate)
        self.save()
        return duplicate

    async def restore_task(self, snapshot: Task) -> Task | None:
        """Re-insert a previously removed task under its original id.

        Returns:
            The restored task, or None if a task with that id exists
        """
        if self.get_task(snapshot.id) is not None:
            logger.warning("cannot restore task %s: id already in use", snapshot.id)
            return None
        restored = snapshot.model_copy(deep=True)
        self.tasks.append(restored)
        self.save()
        return restored

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search_tasks(self, query: str) -> list[Task]:
        """Case-insensitive substring search over title, description and notes."""
        if not query.strip():
            return list(self.tasks)
        term = query.lower()
        return [
            task
            for task in self.tasks
            if term in task.title.lower()
            or term in task.description.lower()
            or term in task.notes.lower()
        ]

    @staticmethod
    def sort_tasks(tasks: Iterable[Task], sort_by: str = "createdAt", order: str = "desc") -> list[Task]:
        """Stable sort by title, priority, due date or creation time.

        Unknown keys sort by creation time. Tasks without a due date sort as
        if due at the epoch.
        """
        field = SORT_KEYS.get(sort_by, "created_at")
        return sorted(tasks, key=lambda t: _sort_value(t, field), reverse=order != "asc")

    @staticmethod
    def filter_tasks(
        tasks: Iterable[Task],
        *,
        category: str = "all",
        status: str = "all",
        priority: str = "all",
    ) -> list[Task]:
        """Filter by category id, status ("completed" or "pending") and priority."""
        result = []
        for task in tasks:
            if category != "all" and task.category != category:
                continue
            if status == "completed" and not task.completed:
                continue
            if status == "pending" and task.completed:
                continue
            if priority != "all" and task.priority != priority:
                continue
            result.append(task)
        return result

    def get_task_stats(self) -> TaskStats:
        now = self.clock()
        total = len(self.tasks)
        completed = sum(1 for task in self.tasks if task.completed)
        overdue = sum(1 for task in self.tasks if task.is_overdue(now))
        rate = math.floor(completed / total * 100 + 0.5) if total else 0
        return TaskStats(
            total=total,
            completed=completed,
            pending=total - completed,
            overdue=overdue,
            completion_rate=rate,
        )

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_category(self, category_id: str) -> Category | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def category_counts(self) -> dict[str, int]:
        """Number of tasks referencing each known category."""
        counts = {category.id: 0 for category in self.categories}
        for task in self.tasks:
            if task.category in counts:
                counts[task.category] += 1
        return counts

    def add_category(self, category_data: CategoryCreate) -> Result[Category]:
        """Create a custom category. Names are unique ignoring case."""
        name = category_data.name
        if not name:
            return Result.fail(ValidationError("Please enter a category name"))
        if any(c.name.lower() == name.lower() for c in self.categories):
            return Result.fail(ValidationError("A category with this name already exists"))

        category = Category(
            id=generate_category_id(), name=name, color=category_data.color, is_custom=True
        )
        self.categories.append(category)
        if not self.save():
            self.categories.remove(category)
            return Result.fail(PersistenceError("Failed to save category"))
        return Result.ok(category, f'Category "{name}" created successfully!')

    def delete_category(
        self, category_id: str, confirm: ConfirmCallback | None = None
    ) -> Result[Category]:
        """Delete a category that no task references.

        Args:
            category_id: Category to delete
            confirm: Called with the category before deleting; returning
                False cancels the deletion

        Returns:
            Result carrying the deleted category
        """
        in_use = sum(1 for task in self.tasks if task.category == category_id)
        if in_use:
            return Result.fail(CategoryInUseError(category_id, in_use))

        category = self.get_category(category_id)
        if category is None:
            return Result.fail(NotFoundError(f"Category not found: {category_id}"))

        if confirm is not None and not confirm(category):
            return Result.fail("Category deletion cancelled")

        index = self.categories.index(category)
        del self.categories[index]
        if not self.save():
            self.categories.insert(index, category)
            return Result.fail(PersistenceError("Failed to delete category"))
        return Result.ok(category, f'Category "{category.name}" deleted successfully!')

    # ------------------------------------------------------------------

    def _index_of(self, task_id: str) -> int | None:
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                return index
        return None

    def _touch(self, task: Task) -> None:
        task.updated_at = max(self.clock(), task.created_at)
