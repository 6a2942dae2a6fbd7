"""Configuration models for TaskFlow CLI."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class StorageConfig(BaseModel):
    """Key-value storage configuration."""

    path: str | None = Field(
        default=None, description="SQLite database path (default: user data dir)"
    )
    quota_bytes: int = Field(default=DEFAULT_QUOTA_BYTES, ge=1024)


class AuthConfig(BaseModel):
    """Authentication configuration."""

    remember_days: int = Field(default=30, ge=1)
    backup_retention_days: int = Field(default=7, ge=1)
    allow_legacy_plaintext: bool = Field(
        default=True,
        description="Accept and upgrade plaintext credentials from old data",
    )
    plaintext_threshold: int = Field(default=50, ge=1)


class UndoConfig(BaseModel):
    """Undo window durations in seconds."""

    complete_seconds: int = Field(default=8, ge=1)
    delete_seconds: int = Field(default=10, ge=1)


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["table", "json", "yaml"] = Field(default="table")
    color: bool = Field(default=True)


class AppConfig(BaseModel):
    """Main TaskFlow configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    undo: UndoConfig = Field(default_factory=UndoConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
