"""TaskFlow CLI - a local, single-user task manager."""

__version__ = "1.0.0"
