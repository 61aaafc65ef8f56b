"""Command-line interface for stacksync."""

from stacksync.cli.main import cli, main

__all__ = ["cli", "main"]
