"""
Command-line interface for everybanana.

This package contains CLI implementations using Click.
Uses only the public API: from everybanana import ...
"""

from everybanana.cli.commands import cli


def main() -> None:
    """Entry point for the everybanana console script."""
    cli()


__all__ = ["cli", "main"]
