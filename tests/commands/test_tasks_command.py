"""Tests for 'taskflow tasks' commands."""

from __future__ import annotations

import asyncio
import json
import re
from datetime import UTC, datetime

import pytest
from typer.testing import CliRunner

from taskflow_cli.main import app
from taskflow_cli.models import TaskCreate

runner = CliRunner()


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


def _add(taskflow, title: str, **fields):
    return asyncio.run(taskflow.tasks.add_task(TaskCreate(title=title, **fields)))


def _invoke(taskflow, *args, **kwargs):
    return runner.invoke(app, ["tasks", *args], obj=taskflow, **kwargs)


class TestAuthGate:
    def test_tasks_require_login(self, taskflow_app):
        result = _invoke(taskflow_app, "list")
        assert result.exit_code == 3
        assert "Not logged in" in strip_ansi(result.output)


class TestAdd:
    def test_add_task(self, logged_in_app):
        result = _invoke(
            logged_in_app,
            "add",
            "Buy milk",
            "-p",
            "high",
            "-c",
            "shopping",
            "--due",
            "2024-06-02T17:00:00Z",
            "-s",
            "Check fridge",
        )

        assert result.exit_code == 0, result.output
        assert "Task added: Buy milk" in strip_ansi(result.output)
        task = logged_in_app.tasks.tasks[0]
        assert task.priority == "high"
        assert task.category == "shopping"
        assert task.due_date == datetime(2024, 6, 2, 17, 0, tzinfo=UTC)
        assert [s.title for s in task.subtasks] == ["Check fridge"]

    def test_unknown_category_warns(self, logged_in_app):
        result = _invoke(logged_in_app, "add", "Thing", "-c", "nowhere")
        assert result.exit_code == 0
        assert "does not exist" in strip_ansi(result.output)
        assert logged_in_app.tasks.tasks[0].category == "nowhere"

    def test_invalid_due_date(self, logged_in_app):
        result = _invoke(logged_in_app, "add", "Thing", "--due", "tomorrow-ish")
        assert result.exit_code == 2
        assert logged_in_app.tasks.tasks == []

    def test_invalid_priority(self, logged_in_app):
        result = _invoke(logged_in_app, "add", "Thing", "-p", "urgent")
        assert result.exit_code != 0
        assert logged_in_app.tasks.tasks == []


class TestList:
    def test_empty(self, logged_in_app):
        result = _invoke(logged_in_app, "list")
        assert result.exit_code == 0
        assert "No tasks found" in strip_ansi(result.output)

    def test_json_filters_and_sorts(self, logged_in_app):
        _add(logged_in_app, "beta", priority="low")
        _add(logged_in_app, "alpha", priority="high")
        done = _add(logged_in_app, "gamma")
        asyncio.run(logged_in_app.tasks.toggle_task(done.id))

        result = _invoke(
            logged_in_app, "list", "--status", "pending", "--sort", "title", "--order", "asc", "-o", "json"
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [t["title"] for t in data] == ["alpha", "beta"]
        assert "createdAt" in data[0]

    def test_search_option(self, logged_in_app):
        _add(logged_in_app, "Buy milk")
        _add(logged_in_app, "Call mom")
        result = _invoke(logged_in_app, "list", "--search", "MILK", "-o", "json")
        assert [t["title"] for t in json.loads(result.output)] == ["Buy milk"]

    def test_table(self, logged_in_app):
        _add(logged_in_app, "Buy milk")
        result = _invoke(logged_in_app, "list")
        output = strip_ansi(result.output)
        assert "1 pending" in output
        assert "Buy milk" in output


class TestShowEdit:
    def test_show_by_prefix(self, logged_in_app):
        task = _add(logged_in_app, "Write report", notes="draft first")
        result = _invoke(logged_in_app, "show", task.id[:8], "-o", "json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["notes"] == "draft first"

    def test_show_table(self, logged_in_app):
        task = _add(logged_in_app, "Write report")
        asyncio.run(logged_in_app.tasks.add_subtask(task.id, "[outline]"))
        result = _invoke(logged_in_app, "show", task.id)
        output = strip_ansi(result.output)
        assert "Write report" in output
        assert "[outline]" in output

    def test_show_unknown(self, logged_in_app):
        result = _invoke(logged_in_app, "show", "zzzzzzzz")
        assert result.exit_code == 5
        assert "Task not found" in strip_ansi(result.output)

    def test_edit(self, logged_in_app):
        task = _add(logged_in_app, "Draft", due_date=datetime(2024, 6, 5, tzinfo=UTC))
        result = _invoke(logged_in_app, "edit", task.id, "--title", "Final", "--clear-due")
        assert result.exit_code == 0, result.output
        assert "Task updated: Final" in strip_ansi(result.output)
        updated = logged_in_app.tasks.get_task(task.id)
        assert updated.title == "Final"
        assert updated.due_date is None

    def test_edit_nothing(self, logged_in_app):
        task = _add(logged_in_app, "Draft")
        result = _invoke(logged_in_app, "edit", task.id)
        assert result.exit_code == 2
        assert "Nothing to update" in strip_ansi(result.output)


class TestCompleteDelete:
    def test_complete_prints_undo_hint(self, logged_in_app):
        task = _add(logged_in_app, "Write report")
        result = _invoke(logged_in_app, "complete", task.id)

        assert result.exit_code == 0, result.output
        output = strip_ansi(result.output)
        assert "Task completed!" in output
        assert "Undo within 8s" in output
        assert logged_in_app.tasks.get_task(task.id).completed

    def test_complete_twice_marks_pending(self, logged_in_app):
        task = _add(logged_in_app, "Write report")
        _invoke(logged_in_app, "complete", task.id)
        result = _invoke(logged_in_app, "complete", task.id)
        assert "Task marked as pending" in strip_ansi(result.output)
        assert "Undo within" not in strip_ansi(result.output)

    def test_delete_with_yes(self, logged_in_app):
        task = _add(logged_in_app, "Old task")
        result = _invoke(logged_in_app, "delete", task.id, "--yes")
        assert result.exit_code == 0, result.output
        assert "Task deleted: Old task" in strip_ansi(result.output)
        assert logged_in_app.tasks.get_task(task.id) is None

    def test_delete_declined(self, logged_in_app):
        task = _add(logged_in_app, "Old task")
        result = _invoke(logged_in_app, "delete", task.id, input="n\n")
        output = strip_ansi(result.output)
        assert result.exit_code == 0
        assert "Are you sure you want to delete this task?" in output
        assert "Deletion cancelled" in output
        assert logged_in_app.tasks.get_task(task.id) is not None

    def test_duplicate(self, logged_in_app):
        task = _add(logged_in_app, "Report")
        result = _invoke(logged_in_app, "duplicate", task.id)
        assert "Task duplicated successfully!" in strip_ansi(result.output)
        assert [t.title for t in logged_in_app.tasks.tasks] == ["Report", "Report (Copy)"]


class TestSearchStats:
    def test_search(self, logged_in_app):
        _add(logged_in_app, "alpha", description="find me")
        _add(logged_in_app, "beta")
        result = _invoke(logged_in_app, "search", "find", "-o", "json")
        assert [t["title"] for t in json.loads(result.output)] == ["alpha"]

    def test_stats_json(self, logged_in_app):
        first = _add(logged_in_app, "a")
        _add(logged_in_app, "b")
        _add(logged_in_app, "c")
        asyncio.run(logged_in_app.tasks.toggle_task(first.id))

        result = _invoke(logged_in_app, "stats", "-o", "json")

        data = json.loads(result.output)
        assert data["total"] == 3
        assert data["completed"] == 1
        assert data["completionRate"] == 33

    def test_stats_table(self, logged_in_app):
        _add(logged_in_app, "a")
        result = _invoke(logged_in_app, "stats")
        assert "0%" in strip_ansi(result.output)


class TestSubtasks:
    def test_add_and_toggle(self, logged_in_app):
        task = _add(logged_in_app, "Trip")

        added = _invoke(logged_in_app, "subtask", "add", task.id, "Pack bags")
        assert added.exit_code == 0, added.output
        subtask = logged_in_app.tasks.get_task(task.id).subtasks[0]

        toggled = _invoke(logged_in_app, "subtask", "toggle", task.id, subtask.id[:6])
        assert toggled.exit_code == 0, toggled.output
        assert "marked done" in strip_ansi(toggled.output)
        assert logged_in_app.tasks.get_task(task.id).subtasks[0].completed

    @pytest.mark.parametrize("prefix", ["zzzz", ""])
    def test_toggle_unknown(self, logged_in_app, prefix):
        task = _add(logged_in_app, "Trip", subtasks=[{"title": "a"}, {"title": "b"}])
        result = _invoke(logged_in_app, "subtask", "toggle", task.id, prefix)
        assert result.exit_code == 5
