"""Tests for exit code helpers."""

from __future__ import annotations

import pytest

from taskflow_cli.exceptions import (
    AuthError,
    CategoryInUseError,
    CorruptionError,
    NotFoundError,
    StorageQuotaExceeded,
    ValidationError,
)
from taskflow_cli.utils.exit_codes import (
    ERROR_AUTH_FAILURE,
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_NOT_FOUND,
    ERROR_STORAGE,
    exit_code_for,
    get_exit_code_name,
)


class TestExitCodes:
    @pytest.mark.parametrize(
        "error, code",
        [
            (ValidationError("x"), ERROR_INVALID_ARGS),
            (CategoryInUseError("work", 2), ERROR_INVALID_ARGS),
            (AuthError(), ERROR_AUTH_FAILURE),
            (NotFoundError("x"), ERROR_NOT_FOUND),
            (StorageQuotaExceeded("x"), ERROR_STORAGE),
            (CorruptionError("x"), ERROR_GENERAL),
            (None, ERROR_GENERAL),
        ],
    )
    def test_exit_code_for(self, error, code):
        assert exit_code_for(error) == code

    def test_names(self):
        assert get_exit_code_name(ERROR_NOT_FOUND) == "ERROR_NOT_FOUND"
        assert get_exit_code_name(42) == "UNKNOWN(42)"
