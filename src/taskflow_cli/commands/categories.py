"""Category management commands."""

from typing import Annotated

import typer

from taskflow_cli.models import Category, CategoryCreate
from taskflow_cli.models.task import DEFAULT_CATEGORY_COLOR
from taskflow_cli.utils.typer_helpers import SuggestingGroup
from taskflow_cli.utils.ui.formatters import (
    format_categories,
    format_info,
    format_output,
    format_success,
)

from .decorators import command_wrapper, get_app, unwrap

app = typer.Typer(cls=SuggestingGroup, help="Category management commands")


@app.command("list")
@command_wrapper
def list_categories(
    ctx: typer.Context,
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "table",
) -> None:
    """List categories with the number of tasks in each."""
    store = get_app(ctx).tasks
    counts = store.category_counts()
    if output in ("json", "yaml"):
        format_output(
            [{**c.to_storage(), "taskCount": counts.get(c.id, 0)} for c in store.categories],
            output,
        )
    else:
        format_categories(store.categories, counts)


@app.command("add")
@command_wrapper
def add_category(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Category name")],
    color: Annotated[str, typer.Option("--color", help="Hex color")] = DEFAULT_CATEGORY_COLOR,
) -> None:
    """Create a custom category."""
    result = get_app(ctx).tasks.add_category(CategoryCreate(name=name, color=color))
    category = unwrap(result)
    format_success(f"{result.message} (id: {category.id})")


@app.command("delete")
@command_wrapper
def delete_category(
    ctx: typer.Context,
    category_id: Annotated[str, typer.Argument(help="Category ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a category that no task uses."""

    def confirm(category: Category) -> bool:
        return yes or typer.confirm(
            f'Are you sure you want to delete the category "{category.name}"?'
        )

    result = get_app(ctx).tasks.delete_category(category_id, confirm=confirm)
    if not result.success and result.error is None:
        format_info(result.message)
        return
    unwrap(result)
    format_success(result.message)
