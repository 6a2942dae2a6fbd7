"""Remember-token jar adapters."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from taskflow_cli.exceptions import PersistenceError
from taskflow_cli.models import RememberToken
from taskflow_cli.repositories import TokenJar

logger = logging.getLogger(__name__)


class FileTokenJar(TokenJar):
    """Stores the remember token as JSON in a file readable only by its owner."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> RememberToken | None:
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                return RememberToken.model_validate_json(f.read())
        except (OSError, PydanticValidationError) as e:
            logger.warning("ignoring unreadable remember token: %s", e)
            return None

    def save(self, token: RememberToken) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(token.model_dump_json(by_alias=True, indent=2))

            # Set secure file permissions
            self.path.chmod(0o600)
        except OSError as e:
            raise PersistenceError(f"Failed to write remember token: {e}") from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to remove remember token: {e}") from e


class MemoryTokenJar(TokenJar):
    """Token jar held in memory."""

    def __init__(self, token: RememberToken | None = None):
        self.token = token

    def load(self) -> RememberToken | None:
        return self.token

    def save(self, token: RememberToken) -> None:
        self.token = token

    def clear(self) -> None:
        self.token = None
