"""Decorators and helpers for command functions."""

import asyncio
import functools
import inspect
import time
import traceback
from collections.abc import Callable

import typer

from taskflow_cli.app import TaskflowApp, build_app
from taskflow_cli.models import Result
from taskflow_cli.services.config_service import get_config_service
from taskflow_cli.utils.exit_codes import (
    ERROR_AUTH_FAILURE,
    exit_code_for,
    get_exit_code_name,
)
from taskflow_cli.utils.logger import get_logger
from taskflow_cli.utils.ui.console import set_color_enabled
from taskflow_cli.utils.ui.formatters import format_error, format_info


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def get_app(ctx: typer.Context) -> TaskflowApp:
    """Return the application attached to the root context, building it once."""
    root = ctx.find_root()
    if root.obj is None:
        config = get_config_service().config
        if not config.output.color:
            set_color_enabled(False)
        root.obj = build_app(config)
        if root.obj.notice:
            format_info(root.obj.notice)
    return root.obj


def unwrap(result: Result):
    """Return the value of a successful result, or raise AppError."""
    if not result.success:
        raise AppError(result.message, exit_code_for(result.error))
    return result.value


def _find_context(args, kwargs) -> typer.Context | None:
    for value in (*args, *kwargs.values()):
        if isinstance(value, typer.Context):
            return value
    return None


def _require_auth(ctx: typer.Context | None) -> None:
    """Require a logged-in session."""
    if ctx is None:
        return
    if not get_app(ctx).sessions.is_authenticated:
        raise AppError(
            "Not logged in. Use 'taskflow auth login' to authenticate.",
            ERROR_AUTH_FAILURE,
        )


def command_wrapper(_func: Callable | None = None, *, auth_required: bool = True):
    """Decorator to wrap command functions with common functionality."""

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger()
            cmd = func.__name__
            start = time.monotonic()
            logger.info("command started: %s", cmd)
            try:
                # 1. Handle Auth
                if auth_required:
                    _require_auth(_find_context(args, kwargs))

                # 2. Run Sync or Async
                if inspect.iscoroutinefunction(func):
                    result = asyncio.run(func(*args, **kwargs))
                else:
                    result = func(*args, **kwargs)

                elapsed = time.monotonic() - start
                logger.info("command completed: %s (%.3fs)", cmd, elapsed)
                return result

            except AppError as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) [%s] - %s",
                    cmd,
                    elapsed,
                    get_exit_code_name(e.exit_code),
                    str(e),
                )
                format_error(str(e))
                raise typer.Exit(code=e.exit_code) from e

            except typer.Exit:
                # Re-raise Typer's own exits (like --help or explicit Exit(0))
                raise

            except Exception as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) - %s\n%s",
                    cmd,
                    elapsed,
                    str(e),
                    traceback.format_exc(),
                )
                # Generic fallback for unexpected crashes
                format_error(f"An unexpected error occurred: {str(e)}")
                raise typer.Exit(code=1) from e

        return wrapper

    if _func is None:
        return decorator
    return decorator(_func)
