"""Tests for 'taskflow data' commands."""

from __future__ import annotations

import json
import re

from typer.testing import CliRunner

from taskflow_cli.main import app
from taskflow_cli.repositories import StorageKeys

runner = CliRunner()


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


def _invoke(taskflow, *args, **kwargs):
    return runner.invoke(app, ["data", *args], obj=taskflow, **kwargs)


class TestExportImport:
    def test_export_to_file(self, logged_in_app, tmp_path):
        path = tmp_path / "backup.json"
        result = _invoke(logged_in_app, "export", "-f", str(path))

        assert result.exit_code == 0, result.output
        assert "Exported 1 user(s)" in strip_ansi(result.output)
        document = json.loads(path.read_text())
        assert document["version"] == "1.0"
        assert document["users"][0]["email"] == "ada@example.com"
        assert document["currentSession"]["email"] == "ada@example.com"

    def test_export_default_name(self, taskflow_app, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = _invoke(taskflow_app, "export")
        assert result.exit_code == 0, result.output
        assert (tmp_path / "taskflow_backup_2024-06-01.json").exists()

    def test_import_roundtrip(self, logged_in_app, tmp_path):
        path = tmp_path / "backup.json"
        _invoke(logged_in_app, "export", "-f", str(path))
        logged_in_app.credentials.clear_corrupted_user_data()

        result = _invoke(logged_in_app, "import", str(path), "--yes")

        assert result.exit_code == 0, result.output
        assert "Imported 1 users successfully" in strip_ansi(result.output)
        assert logged_in_app.credentials.find_by_email("ada@example.com") is not None

    def test_import_invalid(self, taskflow_app, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"nothing": true}')
        result = _invoke(taskflow_app, "import", str(path), "--yes")
        assert result.exit_code == 2
        assert "Invalid data format" in strip_ansi(result.output)

    def test_import_missing_file(self, taskflow_app, tmp_path):
        result = _invoke(taskflow_app, "import", str(tmp_path / "missing.json"), "--yes")
        assert result.exit_code == 2

    def test_import_declined(self, taskflow_app, tmp_path):
        path = tmp_path / "backup.json"
        path.write_text('{"users": []}')
        result = _invoke(taskflow_app, "import", str(path), input="n\n")
        assert "Import cancelled" in strip_ansi(result.output)


class TestBackups:
    def test_no_backups(self, taskflow_app):
        result = _invoke(taskflow_app, "backups")
        assert "No backups found" in strip_ansi(result.output)

    def test_list_and_recover(self, logged_in_app):
        listed = _invoke(logged_in_app, "backups", "-o", "json")
        assert json.loads(listed.output) == [{"key": "taskflow_users_backup_2024-06-01"}]

        logged_in_app.kv_store.set(StorageKeys.USERS, "corrupt")
        result = _invoke(logged_in_app, "recover")

        assert result.exit_code == 0, result.output
        assert "Recovered" in strip_ansi(result.output)
        assert len(logged_in_app.credentials.users) == 1

    def test_recover_without_backup(self, taskflow_app):
        result = _invoke(taskflow_app, "recover")
        assert result.exit_code == 1
        assert "No backup found" in strip_ansi(result.output)


class TestUsersAndReset:
    def test_users_never_show_passwords(self, logged_in_app):
        result = _invoke(logged_in_app, "users", "-o", "json")
        data = json.loads(result.output)
        assert data[0]["email"] == "ada@example.com"
        assert "password" not in data[0]

    def test_no_users(self, taskflow_app):
        assert "No users stored" in strip_ansi(_invoke(taskflow_app, "users").output)

    def test_clear_corrupted(self, logged_in_app):
        result = _invoke(logged_in_app, "clear-corrupted", "--yes")
        assert result.exit_code == 0
        assert logged_in_app.credentials.users == []
        assert logged_in_app.credentials.list_backups() == []

    def test_reset(self, logged_in_app):
        result = _invoke(logged_in_app, "reset", "--yes")

        assert result.exit_code == 0, result.output
        assert "All TaskFlow data has been reset" in strip_ansi(result.output)
        assert logged_in_app.kv_store.keys_with_prefix("taskflow_") == []
        assert logged_in_app.sessions.current is None
        assert logged_in_app.tasks.scope == "guest"

    def test_reset_declined(self, logged_in_app):
        result = _invoke(logged_in_app, "reset", input="n\n")
        assert "Cancelled" in strip_ansi(result.output)
        assert logged_in_app.sessions.current is not None
