"""
Exit codes for TaskFlow CLI.

Semantic exit codes so that scripts can tell what happened and react.
"""

from taskflow_cli.exceptions import (
    AuthError,
    NotFoundError,
    PersistenceError,
    TaskflowError,
    ValidationError,
)

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Authentication failure (not logged in, invalid credentials, etc.)
ERROR_AUTH_FAILURE = 3

# Resource not found
ERROR_NOT_FOUND = 5

# Storage could not be read or written (quota exceeded, etc.)
ERROR_STORAGE = 7


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_AUTH_FAILURE: "ERROR_AUTH_FAILURE",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_STORAGE: "ERROR_STORAGE",
    }
    return code_names.get(code, f"UNKNOWN({code})")


def exit_code_for(error: TaskflowError | None) -> int:
    """Map a failure to its exit code."""
    if isinstance(error, ValidationError):
        return ERROR_INVALID_ARGS
    if isinstance(error, AuthError):
        return ERROR_AUTH_FAILURE
    if isinstance(error, NotFoundError):
        return ERROR_NOT_FOUND
    if isinstance(error, PersistenceError):
        return ERROR_STORAGE
    return ERROR_GENERAL
