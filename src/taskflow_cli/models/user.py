"""User, session and credential models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from taskflow_cli.models.base import TaskflowModel, UtcDatetime
from taskflow_cli.utils.time_utils import utc_now


class Theme(str, Enum):
    """Display theme."""

    LIGHT = "light"
    DARK = "dark"


class Preferences(TaskflowModel):
    """Per-user preferences.

    Attributes:
        theme: Display theme
        notifications: Whether notifications are enabled
    """

    theme: Theme = Theme.LIGHT
    notifications: bool = True

    @field_validator("theme", mode="before")
    @classmethod
    def _unknown_theme_is_light(cls, value: object) -> object:
        if value not in (Theme.LIGHT, Theme.DARK, "light", "dark"):
            return Theme.LIGHT
        return value


class SessionIdentity(TaskflowModel):
    """Projection of a user record carried in session state.

    Never holds the password credential.
    """

    id: str
    first_name: str
    last_name: str
    email: str
    preferences: Preferences = Field(default_factory=Preferences)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}".upper()


class UserRecord(TaskflowModel):
    """Persisted user account.

    Attributes:
        id: Opaque unique identifier
        first_name: Given name
        last_name: Family name
        email: Lowercase email, unique key
        password: Encoded credential (digest, or plaintext for legacy data)
        created_at: Creation timestamp
        last_login: Timestamp of the last successful login
        preferences: User preferences
    """

    id: str
    first_name: str
    last_name: str
    email: str
    password: str
    created_at: UtcDatetime = Field(default_factory=utc_now)
    last_login: UtcDatetime | None = None
    preferences: Preferences = Field(default_factory=Preferences)

    @field_validator("id", "first_name", "last_name", "password")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("preferences", mode="before")
    @classmethod
    def _missing_preferences(cls, value: object) -> object:
        return {} if value is None else value

    def to_session(self) -> SessionIdentity:
        """Build the session projection of this record."""
        return SessionIdentity(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            preferences=self.preferences.model_copy(),
        )


class RegistrationForm(TaskflowModel):
    """Sign-up form input.

    Validation happens in the credential store so that every problem is
    reported as a result instead of an exception.
    """

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    agree_terms: bool = False


class RememberToken(TaskflowModel):
    """Long-lived session restoration artifact.

    Attributes:
        identity: Session projection to restore
        expires_at: Moment after which the token is ignored
    """

    identity: SessionIdentity
    expires_at: UtcDatetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class PasswordStrength(TaskflowModel):
    """Outcome of the password strength evaluation.

    Attributes:
        score: Number of satisfied rules (0-5)
        feedback: Human readable descriptions of unmet rules
        label: Qualitative label ("Very Weak" ... "Strong")
        length_ok: Whether the minimum length rule holds
    """

    score: int = Field(ge=0, le=5)
    feedback: list[str] = Field(default_factory=list)
    label: str
    length_ok: bool

    @property
    def is_valid(self) -> bool:
        return self.score >= 4

    @property
    def is_acceptable(self) -> bool:
        """Whether the password may be used for registration."""
        return self.is_valid and self.length_ok
