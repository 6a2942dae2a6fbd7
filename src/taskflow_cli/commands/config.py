"""Configuration management commands."""

from typing import Annotated

import typer
from pydantic import ValidationError as PydanticValidationError

from taskflow_cli.services.config_service import get_config_service
from taskflow_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from taskflow_cli.utils.typer_helpers import SuggestingGroup
from taskflow_cli.utils.ui.console import get_console
from taskflow_cli.utils.ui.formatters import format_info, format_output, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Configuration management")
console = get_console()


def _parse_value(value: str) -> str | int | bool | None:
    """Convert a command-line value to the type it most likely means."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null"):
        return None
    if value.isdigit():
        return int(value)
    return value


@app.command("show")
@command_wrapper(auth_required=False)
def show_config(
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "yaml",
) -> None:
    """Show the current configuration."""
    config_service = get_config_service()
    console.print(f"[dim]{config_service.config_path}[/dim]")
    format_output(config_service.config.model_dump(), output)


@app.command("get")
@command_wrapper(auth_required=False)
def get_config(
    key: Annotated[str, typer.Argument(help="Configuration key (e.g., undo.delete_seconds)")],
) -> None:
    """Get a configuration value."""
    value = get_config_service().get(key)
    if value is None:
        raise AppError(f"Configuration key '{key}' not found", ERROR_NOT_FOUND)
    console.print(value)


@app.command("set")
@command_wrapper(auth_required=False)
def set_config(
    key: Annotated[str, typer.Argument(help="Configuration key (e.g., undo.delete_seconds)")],
    value: Annotated[str, typer.Argument(help="Configuration value")],
) -> None:
    """Set a configuration value."""
    parsed_value = _parse_value(value)
    try:
        get_config_service().set(key, parsed_value)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", ERROR_NOT_FOUND) from e
    except PydanticValidationError as e:
        raise AppError(f"Invalid value for '{key}': {value}", ERROR_INVALID_ARGS) from e
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper(auth_required=False)
def reset_config(
    key: Annotated[str | None, typer.Argument(help="Configuration key to reset")] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_info("Cancelled")
            return

    try:
        get_config_service().reset(key)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", ERROR_NOT_FOUND) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
