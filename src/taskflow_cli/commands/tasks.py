"""Task management commands."""

from typing import Annotated

import typer

from taskflow_cli.app import TaskflowApp
from taskflow_cli.models import Priority, Task, TaskCreate, TaskUpdate
from taskflow_cli.services.task_store import TaskStore
from taskflow_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from taskflow_cli.utils.id_utils import resolve_task_id, shorten_id
from taskflow_cli.utils.time_utils import parse_datetime
from taskflow_cli.utils.typer_helpers import SuggestingGroup
from taskflow_cli.utils.ui.console import get_console
from taskflow_cli.utils.ui.formatters import (
    format_info,
    format_output,
    format_stats,
    format_success,
    format_task_detail,
    format_tasks,
    format_warning,
)

from .decorators import AppError, command_wrapper, get_app, unwrap

app = typer.Typer(cls=SuggestingGroup, help="Task management commands")
subtask_app = typer.Typer(cls=SuggestingGroup, help="Subtask commands")
app.add_typer(subtask_app, name="subtask")
console = get_console()

OutputOption = Annotated[str, typer.Option("--output", "-o", help="Output format")]


def _resolve(taskflow: TaskflowApp, task_id: str) -> Task:
    try:
        full_id = resolve_task_id(task_id, taskflow.tasks.tasks)
    except ValueError as e:
        raise AppError(str(e), ERROR_NOT_FOUND) from e
    return taskflow.tasks.get_task(full_id)


def _parse_due(value: str | None):
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise AppError(f"Invalid due date '{value}': use ISO format, e.g. 2024-06-01T17:00", ERROR_INVALID_ARGS) from e


def _warn_if_unsaved(taskflow: TaskflowApp) -> None:
    if not taskflow.tasks.last_save_ok:
        format_warning("Changes could not be saved to storage")


def _show(tasks: list[Task], taskflow: TaskflowApp, output: str, title: str = "Tasks") -> None:
    if output in ("json", "yaml"):
        format_output([task.to_storage() for task in tasks], output)
    else:
        format_tasks(tasks, taskflow.tasks.categories, taskflow.clock(), title=title)


@app.command("add")
@command_wrapper
async def add_task(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Task title")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    priority: Annotated[Priority, typer.Option("--priority", "-p")] = Priority.MEDIUM,
    category: Annotated[str, typer.Option("--category", "-c", help="Category ID")] = "personal",
    due: Annotated[str | None, typer.Option("--due", help="Due date (ISO format)")] = None,
    notes: Annotated[str, typer.Option("--notes")] = "",
    subtasks: Annotated[
        list[str] | None, typer.Option("--subtask", "-s", help="Subtask title (repeatable)")
    ] = None,
) -> None:
    """Create a new task."""
    taskflow = get_app(ctx)
    if taskflow.tasks.get_category(category) is None:
        format_warning(f"Category '{category}' does not exist")

    task = await taskflow.tasks.add_task(
        TaskCreate(
            title=title,
            description=description,
            priority=priority.value,
            category=category,
            due_date=_parse_due(due),
            notes=notes,
            subtasks=[{"title": s} for s in subtasks or []],
        )
    )
    _warn_if_unsaved(taskflow)
    format_success(f"Task added: {task.title} ({shorten_id(task.id)})")


@app.command("list")
@command_wrapper
def list_tasks(
    ctx: typer.Context,
    category: Annotated[str, typer.Option("--category", "-c")] = "all",
    status: Annotated[str, typer.Option("--status", help="all, completed or pending")] = "all",
    priority: Annotated[str, typer.Option("--priority", "-p")] = "all",
    search: Annotated[str, typer.Option("--search", help="Search text")] = "",
    sort: Annotated[
        str, typer.Option("--sort", help="createdAt, title, priority or dueDate")
    ] = "createdAt",
    order: Annotated[str, typer.Option("--order", help="asc or desc")] = "desc",
    output: OutputOption = "table",
) -> None:
    """List tasks."""
    taskflow = get_app(ctx)
    store = taskflow.tasks
    tasks = store.search_tasks(search)
    tasks = TaskStore.filter_tasks(tasks, category=category, status=status, priority=priority)
    _show(TaskStore.sort_tasks(tasks, sort, order), taskflow, output)


@app.command("show")
@command_wrapper
def show_task(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    output: OutputOption = "table",
) -> None:
    """Show a task with its subtasks."""
    taskflow = get_app(ctx)
    task = _resolve(taskflow, task_id)
    if output in ("json", "yaml"):
        format_output(task.to_storage(), output)
    else:
        format_task_detail(task, taskflow.tasks.categories, taskflow.clock())


@app.command("edit")
@command_wrapper
async def edit_task(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    title: Annotated[str | None, typer.Option("--title")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
    priority: Annotated[Priority | None, typer.Option("--priority", "-p")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c")] = None,
    due: Annotated[str | None, typer.Option("--due")] = None,
    clear_due: Annotated[bool, typer.Option("--clear-due", help="Remove the due date")] = False,
    notes: Annotated[str | None, typer.Option("--notes")] = None,
) -> None:
    """Update fields of a task."""
    taskflow = get_app(ctx)
    task = _resolve(taskflow, task_id)

    changes = {
        "title": title,
        "description": description,
        "priority": priority.value if priority else None,
        "category": category,
        "notes": notes,
    }
    changes = {name: value for name, value in changes.items() if value is not None}
    if clear_due:
        changes["due_date"] = None
    elif due is not None:
        changes["due_date"] = _parse_due(due)
    if not changes:
        raise AppError("Nothing to update", ERROR_INVALID_ARGS)

    updated = await taskflow.tasks.update_task(task.id, TaskUpdate(**changes))
    _warn_if_unsaved(taskflow)
    format_success(f"Task updated: {updated.title}")


@app.command("complete")
@command_wrapper
async def complete_task(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
) -> None:
    """Toggle a task between completed and pending."""
    taskflow = get_app(ctx)
    task = _resolve(taskflow, task_id)
    result = await taskflow.pipeline.toggle_task(task.id)
    unwrap(result)
    _warn_if_unsaved(taskflow)
    format_success(result.message)
    if result.value.completed:
        console.print(
            f"[dim]Undo within {taskflow.pipeline.seconds_left()}s: taskflow undo[/dim]"
        )


@app.command("delete")
@command_wrapper
async def delete_task(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a task. The deletion can be undone for a short time."""
    taskflow = get_app(ctx)
    task = _resolve(taskflow, task_id)

    def confirm(_task: Task, message: str) -> bool:
        return yes or typer.confirm(message)

    result = await taskflow.pipeline.delete_task(task.id, confirm=confirm)
    if not result.success and result.error is None:
        format_info(result.message)
        return
    unwrap(result)
    _warn_if_unsaved(taskflow)
    format_success(f"Task deleted: {result.value.title}")
    console.print(f"[dim]Undo within {taskflow.pipeline.seconds_left()}s: taskflow undo[/dim]")


@app.command("duplicate")
@command_wrapper
async def duplicate_task(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
) -> None:
    """Copy a task."""
    taskflow = get_app(ctx)
    task = _resolve(taskflow, task_id)
    duplicate = await taskflow.tasks.duplicate_task(task.id)
    _warn_if_unsaved(taskflow)
    format_success(f"Task duplicated successfully! ({shorten_id(duplicate.id)})")


@app.command("search")
@command_wrapper
def search_tasks(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Text to look for")],
    output: OutputOption = "table",
) -> None:
    """Search titles, descriptions and notes."""
    taskflow = get_app(ctx)
    _show(taskflow.tasks.search_tasks(query), taskflow, output, title=f"Results for '{query}'")


@app.command("stats")
@command_wrapper
def task_stats(ctx: typer.Context, output: OutputOption = "table") -> None:
    """Show completion statistics."""
    stats = get_app(ctx).tasks.get_task_stats()
    if output in ("json", "yaml"):
        format_output(stats.to_storage(), output)
    else:
        format_stats(stats)


@subtask_app.command("add")
@command_wrapper
async def add_subtask(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    title: Annotated[str, typer.Argument(help="Subtask title")],
) -> None:
    """Add a subtask to a task."""
    taskflow = get_app(ctx)
    task = _resolve(taskflow, task_id)
    subtask = await taskflow.tasks.add_subtask(task.id, title)
    _warn_if_unsaved(taskflow)
    format_success(f"Subtask added: {subtask.title} ({shorten_id(subtask.id)})")


@subtask_app.command("toggle")
@command_wrapper
async def toggle_subtask(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    subtask_id: Annotated[str, typer.Argument(help="Subtask ID or prefix")],
) -> None:
    """Toggle a subtask between done and not done."""
    taskflow = get_app(ctx)
    task = _resolve(taskflow, task_id)
    matches = [s for s in task.subtasks if s.id.startswith(subtask_id.strip())]
    if len(matches) != 1:
        raise AppError(f"Subtask not found: {subtask_id}", ERROR_NOT_FOUND)

    _task, subtask = await taskflow.tasks.toggle_subtask(matches[0].id)
    _warn_if_unsaved(taskflow)
    state = "done" if subtask.completed else "not done"
    format_success(f"Subtask '{subtask.title}' marked {state}")
