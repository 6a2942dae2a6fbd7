"""Command 'undo' of taskflow-cli"""

from typing import Annotated

import typer

from taskflow_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper, get_app, unwrap


@command_wrapper
async def undo_command(
    ctx: typer.Context,
    undo_id: Annotated[
        str | None, typer.Argument(help="Undo window ID (default: the latest)")
    ] = None,
) -> None:
    """Revert the last completion or deletion while its undo window is open."""
    taskflow = get_app(ctx)
    result = await taskflow.pipeline.undo(undo_id)
    unwrap(result)
    format_success(result.message)
