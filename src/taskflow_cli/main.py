"""Main entry point for TaskFlow CLI."""

from typing import Annotated

import typer

from taskflow_cli import __version__
from taskflow_cli.commands import auth, categories, config, data, tasks
from taskflow_cli.commands.theme_command import theme_command
from taskflow_cli.commands.undo_command import undo_command
from taskflow_cli.utils.logger import get_logger
from taskflow_cli.utils.typer_helpers import SuggestingGroup
from taskflow_cli.utils.ui.console import get_console, set_color_enabled

# Create main app with custom group class
app = typer.Typer(
    name="taskflow",
    cls=SuggestingGroup,
    help="TaskFlow - a local task manager with accounts, categories and undo",
    no_args_is_help=True,
)

console = get_console()


# Add subcommands
app.add_typer(auth.app, name="auth", help="Authentication commands")
app.add_typer(tasks.app, name="tasks", help="Task management commands")
app.add_typer(categories.app, name="categories", help="Category management commands")
app.add_typer(data.app, name="data", help="Data management (export, import, backups)")
app.add_typer(config.app, name="config", help="Configuration management")

# Add top-level commands
app.command("undo")(undo_command)
app.command("theme")(theme_command)


@app.callback()
def main_callback(
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable colored output")] = False,
) -> None:
    """TaskFlow CLI."""
    get_logger()
    if no_color:
        set_color_enabled(False)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]TaskFlow CLI[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
