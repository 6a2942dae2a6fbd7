"""Theme preference stored alongside the rest of the application data."""

from __future__ import annotations

import logging

from taskflow_cli.exceptions import PersistenceError
from taskflow_cli.models import Theme
from taskflow_cli.repositories import KeyValueStore, StorageKeys

logger = logging.getLogger(__name__)


class ThemeService:
    """Reads and writes the light/dark preference."""

    def __init__(self, kv_store: KeyValueStore):
        self.kv_store = kv_store

    def get_theme(self) -> Theme:
        try:
            raw = self.kv_store.get(StorageKeys.THEME)
        except PersistenceError as e:
            logger.error("error reading theme: %s", e)
            return Theme.LIGHT
        try:
            return Theme(raw) if raw else Theme.LIGHT
        except ValueError:
            return Theme.LIGHT

    def set_theme(self, theme: Theme | str) -> bool:
        """Persist the theme.

        Raises:
            ValueError: If theme is not "light" or "dark"
        """
        theme = Theme(theme)
        try:
            self.kv_store.set(StorageKeys.THEME, theme.value)
        except PersistenceError as e:
            logger.error("error saving theme: %s", e)
            return False
        return True

    def toggle_theme(self) -> Theme:
        new_theme = Theme.LIGHT if self.get_theme() == Theme.DARK else Theme.DARK
        self.set_theme(new_theme)
        return new_theme
