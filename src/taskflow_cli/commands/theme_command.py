"""Command 'theme' of taskflow-cli"""

from typing import Annotated

import typer

from taskflow_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_STORAGE
from taskflow_cli.utils.ui.console import get_console
from taskflow_cli.utils.ui.formatters import format_success

from .decorators import AppError, command_wrapper, get_app

console = get_console()


@command_wrapper(auth_required=False)
def theme_command(
    ctx: typer.Context,
    choice: Annotated[
        str | None, typer.Argument(help="light, dark or toggle (omit to show)")
    ] = None,
) -> None:
    """Show or change the display theme."""
    themes = get_app(ctx).theme
    if choice is None:
        console.print(f"Theme: [cyan]{themes.get_theme().value}[/cyan]")
        return

    if choice == "toggle":
        format_success(f"Theme set to {themes.toggle_theme().value}")
        return

    try:
        saved = themes.set_theme(choice)
    except ValueError as e:
        raise AppError(f"Unknown theme '{choice}': use light, dark or toggle", ERROR_INVALID_ARGS) from e
    if not saved:
        raise AppError("Failed to save theme", ERROR_STORAGE)
    format_success(f"Theme set to {choice}")
