"""Remember-token jar port.

The remember token lives outside the key-value store, like a cookie lives
outside ``localStorage``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from taskflow_cli.models import RememberToken


class TokenJar(ABC):
    """Holds at most one remember token."""

    @abstractmethod
    def load(self) -> RememberToken | None:
        """Return the stored token, or None if absent or unreadable."""
        raise NotImplementedError("TokenJar.load() must be implemented by adapter")

    @abstractmethod
    def save(self, token: RememberToken) -> None:
        """Store the token, replacing any previous one.

        Raises:
            PersistenceError: If the token cannot be written
        """
        raise NotImplementedError("TokenJar.save() must be implemented by adapter")

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored token.

        Raises:
            PersistenceError: If the token cannot be removed
        """
        raise NotImplementedError("TokenJar.clear() must be implemented by adapter")
