"""Command line entrypoint for composer."""

from .main import cli, main

__all__ = ["cli", "main"]
