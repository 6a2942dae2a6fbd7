"""Data management commands (export, import, backups, repair)."""

from pathlib import Path
from typing import Annotated

import typer

from taskflow_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_STORAGE
from taskflow_cli.utils.typer_helpers import SuggestingGroup
from taskflow_cli.utils.ui.formatters import (
    format_info,
    format_output,
    format_success,
)

from .decorators import AppError, command_wrapper, get_app, unwrap

app = typer.Typer(cls=SuggestingGroup, help="Data management (export, import, backups)")


@app.command("export")
@command_wrapper(auth_required=False)
def export_data(
    ctx: typer.Context,
    output_file: Annotated[
        Path | None,
        typer.Option("--output-file", "-f", help="Destination (default: taskflow_backup_<date>.json)"),
    ] = None,
) -> None:
    """Export all accounts and the active session to a JSON file."""
    credentials = get_app(ctx).credentials
    document = credentials.export_data()
    path = output_file or Path(credentials.export_filename())
    try:
        path.write_text(document.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    except OSError as e:
        raise AppError(f"Could not write {path}: {e}", ERROR_STORAGE) from e
    format_success(f"Exported {len(document.users)} user(s) to {path}")


@app.command("import")
@command_wrapper(auth_required=False)
def import_data(
    ctx: typer.Context,
    input_file: Annotated[Path, typer.Argument(help="Export file to import")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Replace all accounts with those of an export file."""
    try:
        content = input_file.read_text(encoding="utf-8")
    except OSError as e:
        raise AppError(f"Could not read {input_file}: {e}", ERROR_INVALID_ARGS) from e

    if not yes and not typer.confirm("This replaces every existing account. Continue?"):
        format_info("Import cancelled")
        return

    result = get_app(ctx).credentials.import_data(content)
    unwrap(result)
    format_success(result.message)


@app.command("backups")
@command_wrapper(auth_required=False)
def list_backups(
    ctx: typer.Context,
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "table",
) -> None:
    """List dated backups of the account collection."""
    backups = get_app(ctx).credentials.list_backups()
    if not backups:
        format_info("No backups found")
        return
    format_output([{"key": key} for key in backups], output)


@app.command("recover")
@command_wrapper(auth_required=False)
def recover(ctx: typer.Context) -> None:
    """Restore accounts from the most recent backup."""
    result = get_app(ctx).credentials.recover_from_backup()
    unwrap(result)
    format_success(result.message)


@app.command("users")
@command_wrapper(auth_required=False)
def list_users(
    ctx: typer.Context,
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "table",
) -> None:
    """List stored accounts (names and emails only)."""
    users = get_app(ctx).credentials.list_users()
    if not users:
        format_info("No users stored")
        return
    format_output(users, output)


@app.command("clear-corrupted")
@command_wrapper(auth_required=False)
def clear_corrupted(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete the account collection and its backups."""
    if not yes and not typer.confirm("This deletes every account and backup. Continue?"):
        format_info("Cancelled")
        return
    if not get_app(ctx).credentials.clear_corrupted_user_data():
        raise AppError("Failed to clear user data", ERROR_STORAGE)
    format_success("User data cleared. You can now register again.")


@app.command("reset")
@command_wrapper(auth_required=False)
def reset(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete all TaskFlow data: accounts, sessions, tasks and categories."""
    if not yes and not typer.confirm("This deletes ALL TaskFlow data. Continue?"):
        format_info("Cancelled")
        return
    taskflow = get_app(ctx)
    if not taskflow.credentials.reset_all_data():
        raise AppError("Failed to reset data", ERROR_STORAGE)
    taskflow.refresh_scope()
    format_success("All TaskFlow data has been reset")
