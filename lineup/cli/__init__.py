"""lineup command-line interface."""

from lineup.cli.main import app, main

__all__ = ["app", "main"]
