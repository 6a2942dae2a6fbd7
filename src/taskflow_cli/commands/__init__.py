"""Command modules for TaskFlow CLI."""
