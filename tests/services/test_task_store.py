"""Tests for TaskStore: task CRUD, queries and categories."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from taskflow_cli.exceptions import (
    CategoryInUseError,
    NotFoundError,
    PersistenceError,
    StorageQuotaExceeded,
    ValidationError,
)
from taskflow_cli.models import CategoryCreate, Task, TaskCreate, TaskUpdate
from taskflow_cli.repositories import StorageKeys
from taskflow_cli.services.task_store import WELCOME_TITLE, TaskStore

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


def _task(task_id: str, **fields) -> Task:
    fields.setdefault("created_at", FIXED_NOW)
    fields.setdefault("updated_at", FIXED_NOW)
    return Task(id=task_id, **fields)


class FailingStore:
    """Store whose writes always fail."""

    def __init__(self, inner):
        self.inner = inner

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def set(self, key, value):
        raise StorageQuotaExceeded("full")


class TestLoad:
    def test_new_partition_gets_defaults_without_writing(self, task_store, kv_store):
        assert [t.title for t in task_store.tasks] == [WELCOME_TITLE]
        assert [c.id for c in task_store.categories] == [
            "personal",
            "work",
            "shopping",
            "health",
            "learning",
        ]
        assert kv_store.get(StorageKeys.tasks("user_test")) is None

    def test_stored_empty_list_stays_empty(self, kv_store, clock):
        kv_store.set(StorageKeys.tasks("user_test"), "[]")
        assert TaskStore(kv_store, "user_test", clock=clock).tasks == []

    def test_corrupt_partition_falls_back_to_defaults(self, kv_store, clock):
        kv_store.set(StorageKeys.tasks("user_test"), "{not json")
        store = TaskStore(kv_store, "user_test", clock=clock)
        assert [t.title for t in store.tasks] == [WELCOME_TITLE]

    def test_partitions_are_isolated(self, kv_store, clock):
        alice = TaskStore(kv_store, "user_a", clock=clock)
        alice.tasks = [_task("t1", title="Alice task")]
        alice.save()

        bob = TaskStore(kv_store, "user_b", clock=clock)
        assert [t.title for t in bob.tasks] == [WELCOME_TITLE]

        bob.switch_scope("user_a")
        assert [t.title for t in bob.tasks] == ["Alice task"]


class TestTaskOperations:
    @pytest.mark.asyncio
    async def test_add_task(self, empty_task_store, kv_store):
        task = await empty_task_store.add_task(
            TaskCreate(title="Buy milk", priority="", category="", subtasks=[{"title": "Check fridge"}])
        )

        assert task.priority == "medium"
        assert task.category == "personal"
        assert task.completed is False
        assert task.created_at == task.updated_at == FIXED_NOW
        stored = json.loads(kv_store.get(StorageKeys.tasks("user_test")))
        assert stored[0]["title"] == "Buy milk"
        assert stored[0]["subtasks"][0]["title"] == "Check fridge"
        assert kv_store.get(StorageKeys.categories("user_test")) is not None

    @pytest.mark.asyncio
    async def test_add_appends_in_order(self, empty_task_store):
        first = await empty_task_store.add_task(TaskCreate(title="one"))
        second = await empty_task_store.add_task(TaskCreate(title="two"))
        assert [t.id for t in empty_task_store.tasks] == [first.id, second.id]
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_update_only_touches_given_fields(self, empty_task_store, clock):
        task = await empty_task_store.add_task(
            TaskCreate(title="Draft", description="keep me", due_date=FIXED_NOW + timedelta(days=1))
        )
        clock.advance(minutes=5)

        updated = await empty_task_store.update_task(task.id, TaskUpdate(title="Final"))

        assert updated.title == "Final"
        assert updated.description == "keep me"
        assert updated.due_date == FIXED_NOW + timedelta(days=1)
        assert updated.created_at == FIXED_NOW
        assert updated.updated_at == clock.now

    @pytest.mark.asyncio
    async def test_update_can_clear_due_date(self, empty_task_store):
        task = await empty_task_store.add_task(TaskCreate(title="x", due_date=FIXED_NOW))
        updated = await empty_task_store.update_task(task.id, TaskUpdate(due_date=None))
        assert updated.due_date is None

    @pytest.mark.asyncio
    async def test_update_ignores_null_title(self, empty_task_store):
        task = await empty_task_store.add_task(TaskCreate(title="Keep"))
        updated = await empty_task_store.update_task(task.id, TaskUpdate(title=None))
        assert updated.title == "Keep"

    @pytest.mark.asyncio
    async def test_update_missing(self, empty_task_store):
        assert await empty_task_store.update_task("nope", TaskUpdate(title="x")) is None

    @pytest.mark.asyncio
    async def test_delete(self, empty_task_store):
        task = await empty_task_store.add_task(TaskCreate(title="x"))
        assert await empty_task_store.delete_task(task.id)
        assert not await empty_task_store.delete_task(task.id)
        assert empty_task_store.tasks == []

    @pytest.mark.asyncio
    async def test_toggle_is_an_involution(self, empty_task_store, clock):
        task = await empty_task_store.add_task(TaskCreate(title="x"))
        clock.advance(seconds=1)
        toggled = await empty_task_store.toggle_task(task.id)
        assert toggled.completed
        assert toggled.updated_at == clock.now
        again = await empty_task_store.toggle_task(task.id)
        assert not again.completed
        assert await empty_task_store.toggle_task("missing") is None

    @pytest.mark.asyncio
    async def test_updated_at_never_precedes_created_at(self, empty_task_store, clock):
        task = await empty_task_store.add_task(TaskCreate(title="x"))
        clock.now = FIXED_NOW - timedelta(hours=1)
        toggled = await empty_task_store.toggle_task(task.id)
        assert toggled.updated_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_subtasks(self, empty_task_store):
        task = await empty_task_store.add_task(TaskCreate(title="Trip"))
        subtask = await empty_task_store.add_subtask(task.id, "Pack")

        found_task, toggled = await empty_task_store.toggle_subtask(subtask.id)

        assert found_task.id == task.id
        assert toggled.completed
        assert await empty_task_store.toggle_subtask("missing") is None
        assert await empty_task_store.add_subtask("missing", "x") is None

    @pytest.mark.asyncio
    async def test_duplicate(self, empty_task_store, clock):
        original = await empty_task_store.add_task(
            TaskCreate(title="Report", subtasks=[{"title": "Outline"}])
        )
        await empty_task_store.toggle_task(original.id)
        clock.advance(hours=1)

        copy = await empty_task_store.duplicate_task(original.id)

        assert copy.id != original.id
        assert copy.title == "Report (Copy)"
        assert copy.completed is False
        assert copy.created_at == clock.now
        assert copy.subtasks[0].title == "Outline"
        assert copy.subtasks[0].id != original.subtasks[0].id
        assert len(empty_task_store.tasks) == 2

        await empty_task_store.toggle_subtask(copy.subtasks[0].id)
        assert not original.subtasks[0].completed

    @pytest.mark.asyncio
    async def test_restore_task(self, empty_task_store):
        snapshot = _task("t1", title="Back")
        restored = await empty_task_store.restore_task(snapshot)
        assert restored == snapshot
        assert restored is not snapshot
        assert await empty_task_store.restore_task(snapshot) is None

    @pytest.mark.asyncio
    async def test_write_failure_keeps_memory(self, kv_store, clock):
        store = TaskStore(FailingStore(kv_store), "user_test", clock=clock)
        task = await store.add_task(TaskCreate(title="Unsaved"))
        assert store.get_task(task.id) is not None
        assert store.last_save_ok is False


class TestQueries:
    def _tasks(self) -> list[Task]:
        return [
            _task("a", title="banana", priority="low", created_at=FIXED_NOW - timedelta(days=3)),
            _task(
                "b",
                title="Apple",
                priority="high",
                due_date=FIXED_NOW + timedelta(days=1),
                created_at=FIXED_NOW - timedelta(days=2),
            ),
            _task(
                "c",
                title="cherry",
                priority="medium",
                completed=True,
                category="work",
                due_date=FIXED_NOW - timedelta(days=1),
                created_at=FIXED_NOW - timedelta(days=1),
            ),
        ]

    @pytest.mark.parametrize(
        "sort_by, order, expected",
        [
            ("title", "asc", ["b", "a", "c"]),
            ("priority", "desc", ["b", "c", "a"]),
            ("dueDate", "asc", ["a", "c", "b"]),
            ("createdAt", "desc", ["c", "b", "a"]),
            ("bogus", "asc", ["a", "b", "c"]),
        ],
    )
    def test_sort(self, sort_by, order, expected):
        result = TaskStore.sort_tasks(self._tasks(), sort_by, order)
        assert [t.id for t in result] == expected

    def test_sort_is_stable(self):
        tasks = [_task("x", title="same"), _task("y", title="same")]
        assert [t.id for t in TaskStore.sort_tasks(tasks, "title", "asc")] == ["x", "y"]

    def test_filter(self):
        tasks = self._tasks()
        assert [t.id for t in TaskStore.filter_tasks(tasks, status="completed")] == ["c"]
        assert [t.id for t in TaskStore.filter_tasks(tasks, status="pending")] == ["a", "b"]
        assert [t.id for t in TaskStore.filter_tasks(tasks, category="work")] == ["c"]
        assert [t.id for t in TaskStore.filter_tasks(tasks, priority="high")] == ["b"]
        assert len(TaskStore.filter_tasks(tasks)) == 3

    def test_search(self, empty_task_store):
        empty_task_store.tasks = [
            _task("a", title="Buy MILK"),
            _task("b", title="x", description="milk run"),
            _task("c", title="y", notes="Milkshake"),
            _task("d", title="bread"),
        ]
        assert [t.id for t in empty_task_store.search_tasks("milk")] == ["a", "b", "c"]
        assert len(empty_task_store.search_tasks("   ")) == 4

    def test_stats(self, empty_task_store):
        empty_task_store.tasks = self._tasks()
        stats = empty_task_store.get_task_stats()
        assert stats.total == 3
        assert stats.completed == 1
        assert stats.pending == 2
        assert stats.overdue == 0
        assert stats.completion_rate == 33

    def test_stats_overdue_and_rounding(self, kv_store, clock):
        clock.now = datetime(2024, 6, 10, tzinfo=UTC)
        store = TaskStore(kv_store, "user_test", clock=clock)
        store.tasks = [
            _task("a", due_date=FIXED_NOW),
            _task("b", completed=True),
        ]
        stats = store.get_task_stats()
        assert stats.overdue == 1
        assert stats.completion_rate == 50

    def test_stats_empty(self, empty_task_store):
        assert empty_task_store.get_task_stats().completion_rate == 0


class TestCategories:
    def test_add_category(self, empty_task_store):
        result = empty_task_store.add_category(CategoryCreate(name="Errands", color="#22c55e"))
        assert result.success
        assert result.message == 'Category "Errands" created successfully!'
        assert result.value.id.startswith("custom_")
        assert result.value.is_custom

    def test_duplicate_name_ignoring_case(self, empty_task_store):
        result = empty_task_store.add_category(CategoryCreate(name="WORK"))
        assert isinstance(result.error, ValidationError)
        assert result.message == "A category with this name already exists"

    def test_blank_name(self, empty_task_store):
        result = empty_task_store.add_category(CategoryCreate(name="   "))
        assert result.message == "Please enter a category name"

    def test_delete_unused_category(self, empty_task_store):
        result = empty_task_store.delete_category("shopping")
        assert result.success
        assert empty_task_store.get_category("shopping") is None

    def test_delete_in_use_category(self, empty_task_store):
        empty_task_store.tasks = [_task("a", category="work"), _task("b", category="work")]
        result = empty_task_store.delete_category("work")
        assert isinstance(result.error, CategoryInUseError)
        assert result.error.task_count == 2
        assert empty_task_store.get_category("work") is not None

    def test_delete_missing_category(self, empty_task_store):
        result = empty_task_store.delete_category("nope")
        assert isinstance(result.error, NotFoundError)

    def test_delete_cancelled(self, empty_task_store):
        result = empty_task_store.delete_category("health", confirm=lambda c: False)
        assert result.message == "Category deletion cancelled"
        assert result.error is None
        assert empty_task_store.get_category("health") is not None

    def test_category_counts(self, empty_task_store):
        empty_task_store.tasks = [_task("a", category="work"), _task("b", category="gone")]
        counts = empty_task_store.category_counts()
        assert counts["work"] == 1
        assert counts["personal"] == 0
        assert "gone" not in counts

    def test_add_category_rolls_back_on_failed_write(self, kv_store, clock):
        store = TaskStore(FailingStore(kv_store), "user_test", clock=clock)
        before = len(store.categories)
        result = store.add_category(CategoryCreate(name="Errands"))
        assert not result.success
        assert len(store.categories) == before

    def test_delete_category_rollback_keeps_position(self, kv_store, clock):
        store = TaskStore(FailingStore(kv_store), "user_test", clock=clock)
        store.tasks = []
        before = [c.id for c in store.categories]

        result = store.delete_category("shopping")

        assert isinstance(result.error, PersistenceError)
        assert [c.id for c in store.categories] == before
