"""Output formatters for different formats."""

import json
import re
from datetime import datetime
from typing import Any

import yaml
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from taskflow_cli.models import Category, PasswordStrength, Task, TaskStats
from taskflow_cli.utils.id_utils import shorten_id
from taskflow_cli.utils.ui.console import get_console

console = get_console()

PRIORITY_COLORS = {
    "high": "bold red",
    "medium": "bold yellow",
    "low": "green",
}

STATUS_ICONS = {
    "open": "⬜",
    "completed": "✅",
    "overdue": "⏱️",
}

HEX_COLOR = re.compile(r"#[0-9a-fA-F]{6}")

STRENGTH_COLORS = {
    "Very Weak": "bold red",
    "Weak": "red",
    "Fair": "yellow",
    "Good": "cyan",
    "Strong": "bold green",
}


def format_output(data: Any, output_format: str = "table") -> None:
    """Format and display output based on format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    else:
        format_table(data)


def format_table(data: Any) -> None:
    """Format data as a table."""
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if isinstance(data, list):
        if isinstance(data[0], dict):
            format_dict_table(data)
        else:
            for item in data:
                console.print(item)
    elif isinstance(data, dict):
        format_single_item(data)
    else:
        console.print(data)


def _display_value(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return "-"
    return str(value)


def format_dict_table(items: list[dict]) -> None:
    """Format a list of dictionaries as a table."""
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    columns = list(items[0].keys())
    table = Table(show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col.replace("_", " ").title())
    for item in items:
        table.add_row(*(_display_value(item.get(col, "")) for col in columns))

    console.print(table)


def format_single_item(item: dict) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        table.add_row(key.replace("_", " ").title(), _display_value(value))

    console.print(table)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


# ============================================================================
# Task views
# ============================================================================


def format_due_date(due: datetime | None) -> str:
    if due is None:
        return "-"
    return due.astimezone().strftime("%Y-%m-%d %H:%M")


def format_tasks(
    tasks: list[Task], categories: list[Category], now: datetime, title: str = "Tasks"
) -> None:
    """Render tasks as a table with status, priority and category columns."""
    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    names = {c.id: c.name for c in categories}
    pending = sum(1 for t in tasks if not t.completed)

    header = Text()
    header.append(f"📋 {title} ", style="bold cyan")
    header.append(f"({pending} pending, {len(tasks) - pending} completed)", style="dim")
    console.print(header)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("")
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Category")
    table.add_column("Due")
    table.add_column("Subtasks", justify="right")

    for task in tasks:
        overdue = task.is_overdue(now)
        if task.completed:
            icon = STATUS_ICONS["completed"]
            title_text = Text(task.title or "[No title]", style="dim strike")
        else:
            icon = STATUS_ICONS["overdue"] if overdue else STATUS_ICONS["open"]
            title_text = Text(task.title or "[No title]")

        done = sum(1 for s in task.subtasks if s.completed)
        table.add_row(
            shorten_id(task.id),
            icon,
            title_text,
            Text(task.priority, style=PRIORITY_COLORS.get(task.priority, "")),
            names.get(task.category, task.category),
            Text(format_due_date(task.due_date), style="bold red" if overdue else "cyan"),
            f"{done}/{len(task.subtasks)}" if task.subtasks else "",
        )

    console.print(table)


def format_task_detail(task: Task, categories: list[Category], now: datetime) -> None:
    """Render every field of a task, then its subtasks."""
    names = {c.id: c.name for c in categories}
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    status = "completed" if task.completed else ("overdue" if task.is_overdue(now) else "pending")
    table.add_row("ID", task.id)
    table.add_row("Title", task.title or "-")
    table.add_row("Description", task.description or "-")
    table.add_row("Status", status)
    table.add_row("Priority", Text(task.priority, style=PRIORITY_COLORS.get(task.priority, "")))
    table.add_row("Category", names.get(task.category, task.category))
    table.add_row("Due", format_due_date(task.due_date))
    table.add_row("Notes", task.notes or "-")
    table.add_row("Created", format_due_date(task.created_at))
    table.add_row("Updated", format_due_date(task.updated_at))
    console.print(table)

    if task.subtasks:
        console.print()
        console.print("[bold]Subtasks[/bold]")
        for subtask in task.subtasks:
            mark = "[green]✓[/green]" if subtask.completed else "☐"
            console.print(f"  {mark} {escape(subtask.title)} [dim]({shorten_id(subtask.id)})[/dim]")


def format_stats(stats: TaskStats) -> None:
    """Render the progress panel."""
    width = 30
    filled = stats.completion_rate * width // 100
    bar = "█" * filled + "░" * (width - filled)

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Total", str(stats.total))
    table.add_row("Completed", f"[green]{stats.completed}[/green]")
    table.add_row("Pending", str(stats.pending))
    table.add_row("Overdue", f"[bold red]{stats.overdue}[/bold red]" if stats.overdue else "0")
    table.add_row("Progress", f"{bar} {stats.completion_rate}%")
    console.print(table)


def _color_style(color: str) -> str:
    return color if HEX_COLOR.fullmatch(color) else ""


def format_categories(categories: list[Category], counts: dict[str, int]) -> None:
    """Render categories with the number of tasks using each."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Color")
    table.add_column("Tasks", justify="right")
    table.add_column("Custom")

    for category in categories:
        table.add_row(
            category.id,
            Text("● ", style=_color_style(category.color)) + Text(category.name),
            category.color,
            str(counts.get(category.id, 0)),
            "✓" if category.is_custom else "",
        )

    console.print(table)


def format_strength(strength: PasswordStrength) -> None:
    """Render a password strength evaluation."""
    style = STRENGTH_COLORS.get(strength.label, "white")
    console.print(f"Strength: [{style}]{strength.label}[/{style}] ({strength.score}/5)")
    for item in strength.feedback:
        console.print(f"  [dim]•[/dim] {item}")
