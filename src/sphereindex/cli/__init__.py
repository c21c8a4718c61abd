"""Command-line interface for sphereindex."""

from sphereindex.cli.app import cli, main

__all__ = ["cli", "main"]
