"""
Error handling for the CLI.

Every failure in a command ends up here as one line on stderr and an exit code.
"""

import sys
from collections.abc import Callable

import click

from everybanana import (
    ConfigurationError,
    EverybananaError,
    ImageProcessingError,
    ServiceError,
    ValidationError,
)
from everybanana.cli import progress
from everybanana.cli.utils import EXIT_SERVICE_OR_NETWORK, EXIT_VALIDATION_OR_CONFIG
from everybanana.utils.exceptions import error_message

# First match wins, so subclasses go before their bases
_EXIT_TABLE: tuple[tuple[type[BaseException], int, str], ...] = (
    (ValidationError, EXIT_VALIDATION_OR_CONFIG, "Validation failed."),
    (ConfigurationError, EXIT_VALIDATION_OR_CONFIG, "Invalid configuration."),
    (ImageProcessingError, EXIT_VALIDATION_OR_CONFIG, "Image processing failed."),
    (FileNotFoundError, EXIT_VALIDATION_OR_CONFIG, "File not found."),
    (ServiceError, EXIT_SERVICE_OR_NETWORK, "Service or network error."),
    (EverybananaError, EXIT_SERVICE_OR_NETWORK, "An error occurred."),
)


def map_exception_to_exit(exc: BaseException) -> tuple[int, str]:
    """Map an exception to (exit_code, user_message)."""
    for exc_type, code, fallback in _EXIT_TABLE:
        if isinstance(exc, exc_type):
            message = error_message(exc, default=fallback)
            field = getattr(exc, "field", "")
            if field:
                message = f"{message} (field: {field})"
            return code, message
    return EXIT_SERVICE_OR_NETWORK, error_message(exc, default="An unexpected error occurred.")


def _report(message: str, quiet: bool) -> None:
    if quiet:
        click.echo(message, err=True)
    else:
        progress.print_error(message)


def run_with_error_handling(
    fn: Callable[[], None],
    *,
    quiet: bool = False,
    debug: bool = False,
) -> None:
    """
    Run fn() and turn any exception into a message and sys.exit(code).

    With debug=True, exceptions outside the everybanana hierarchy are re-raised
    with their traceback instead.
    """
    try:
        fn()
    except Exception as e:
        if debug and not isinstance(e, (EverybananaError, FileNotFoundError)):
            raise
        code, message = map_exception_to_exit(e)
        _report(message, quiet)
        sys.exit(code)


__all__ = [
    "map_exception_to_exit",
    "run_with_error_handling",
]
