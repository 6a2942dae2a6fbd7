"""Session manager.

Owns the single active session pointer and the long-lived remember token.
The pointer is persisted under its own key, independently of the user
collection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta

from pydantic import ValidationError as PydanticValidationError

from taskflow_cli.exceptions import PersistenceError
from taskflow_cli.models import RememberToken, SessionIdentity
from taskflow_cli.repositories import GUEST_SCOPE, KeyValueStore, StorageKeys, TokenJar
from taskflow_cli.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

LOGIN_VIEW = "login"

Redirect = Callable[[str], None]


class SessionManager:
    """Holds at most one active SessionIdentity."""

    def __init__(
        self,
        kv_store: KeyValueStore,
        token_jar: TokenJar,
        *,
        remember_days: int = 30,
        clock: Clock = utc_now,
        redirect: Redirect | None = None,
    ):
        self.kv_store = kv_store
        self.token_jar = token_jar
        self.remember_days = remember_days
        self.clock = clock
        self.redirect = redirect
        self._current: SessionIdentity | None = None
        self._loaded = False

    @property
    def current(self) -> SessionIdentity | None:
        """The active session, read from storage on first access."""
        if not self._loaded:
            self._current = self._read_session()
            self._loaded = True
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self.current is not None

    @property
    def scope(self) -> str:
        """Partition key for task data: the user id, or the guest partition."""
        current = self.current
        return current.id if current else GUEST_SCOPE

    def reload(self) -> SessionIdentity | None:
        """Forget the cached pointer and read it again."""
        self._loaded = False
        return self.current

    def set_session(self, identity: SessionIdentity | None) -> bool:
        """Set or clear the active session pointer.

        Returns:
            True if the pointer was persisted
        """
        try:
            if identity is None:
                self.kv_store.remove(StorageKeys.CURRENT_SESSION)
            else:
                self.kv_store.set(
                    StorageKeys.CURRENT_SESSION,
                    identity.model_dump_json(by_alias=True),
                )
        except PersistenceError as e:
            logger.error("error setting current user: %s", e)
            return False

        self._current = identity
        self._loaded = True
        return True

    def remember(self, identity: SessionIdentity) -> RememberToken | None:
        """Issue a remember token that expires after ``remember_days``.

        Returns:
            The stored token, or None if it could not be written
        """
        token = RememberToken(
            identity=identity,
            expires_at=self.clock() + timedelta(days=self.remember_days),
        )
        try:
            self.token_jar.save(token)
        except PersistenceError as e:
            logger.error("error saving remember token: %s", e)
            return None
        return token

    def forget(self) -> bool:
        """Remove the remember token.

        Returns:
            True if no token is left behind
        """
        try:
            self.token_jar.clear()
        except PersistenceError as e:
            logger.error("error clearing remember token: %s", e)
            return False
        return True

    def remembered_identity(self) -> SessionIdentity | None:
        """Identity from a valid remember token, if any."""
        token = self.token_jar.load()
        if token is None:
            return None
        if token.is_expired(self.clock()):
            logger.info("remember token expired at %s", token.expires_at.isoformat())
            self.forget()
            return None
        return token.identity

    def restore(self) -> SessionIdentity | None:
        """Restore the session from the remember token when none is active.

        Returns:
            The restored identity, or None when nothing was restored
        """
        if self.current is not None:
            return None
        identity = self.remembered_identity()
        if identity is None:
            return None
        if self.set_session(identity):
            logger.info("session restored from remember token for %s", identity.email)
            return identity
        return None

    def logout(self) -> bool:
        """Clear the session pointer and the remember token, then redirect.

        Returns:
            True if both were cleared
        """
        cleared = self.set_session(None)
        forgotten = self.forget()
        if self.redirect is not None:
            self.redirect(LOGIN_VIEW)
        return cleared and forgotten

    def _read_session(self) -> SessionIdentity | None:
        try:
            raw = self.kv_store.get(StorageKeys.CURRENT_SESSION)
        except PersistenceError as e:
            logger.error("error getting current user: %s", e)
            return None
        if raw is None:
            return None
        try:
            return SessionIdentity.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error("error getting current user: %s", e)
            return None
