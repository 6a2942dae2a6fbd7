"""Typer helper utilities."""

from difflib import get_close_matches

import typer
from typer.core import TyperGroup

from taskflow_cli.utils.exit_codes import ERROR_INVALID_ARGS
from taskflow_cli.utils.ui.console import get_console


class SuggestingGroup(TyperGroup):
    """Command group that answers a mistyped command with close matches.

    Hidden commands are never suggested. Unknown commands exit with the
    invalid-arguments code.
    """

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except Exception as e:
            if not args:
                raise
            attempted = args[0]
            visible = [name for name, cmd in self.commands.items() if not cmd.hidden]
            suggestions = get_close_matches(attempted, visible, n=3, cutoff=0.6)
            if not suggestions:
                raise

            console = get_console()
            console.print(
                f'[red]Error:[/red] unknown command "{attempted}" for "{ctx.command_path}"'
            )
            console.print()
            if len(suggestions) == 1:
                console.print("[yellow]Did you mean this?[/yellow]")
            else:
                console.print("[yellow]Did you mean one of these?[/yellow]")
            for suggestion in suggestions:
                console.print(f"        {suggestion}")
            console.print()
            console.print(f"Run '{ctx.command_path} --help' for usage.")
            raise typer.Exit(ERROR_INVALID_ARGS) from e
