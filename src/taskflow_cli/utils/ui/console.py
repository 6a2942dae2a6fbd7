"""Shared Rich consoles for TaskFlow output."""

from rich.console import Console

_consoles: dict[bool, Console] = {}
_color_enabled = True


def get_console(highlight: bool = True) -> Console:
    """Return the shared console for a highlight setting."""
    console = _consoles.get(highlight)
    if console is None:
        console = Console(highlight=highlight)
        if not _color_enabled:
            console.no_color = True
        _consoles[highlight] = console
    return console


def set_color_enabled(enabled: bool) -> None:
    """Turn colored output on or off for every shared console.

    Backs ``output.color`` in the config and the ``--no-color`` flag.
    """
    global _color_enabled
    _color_enabled = enabled
    for console in _consoles.values():
        console.no_color = not enabled
