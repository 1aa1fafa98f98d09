"""Error reporting for CLI commands."""

import functools
import logging
from typing import Callable

import click
from pydantic import ValidationError
from rich.console import Console

console = Console()
logger = logging.getLogger(__name__)

# Checked in order, first match wins; ValidationError subclasses ValueError
_ERROR_LABELS: list[tuple[type[Exception], str]] = [
    (FileNotFoundError, "File not found"),
    (ValidationError, "Invalid configuration"),
    (ValueError, "Invalid catalog"),
]


def _label_for(error: Exception) -> str:
    for error_type, label in _ERROR_LABELS:
        if isinstance(error, error_type):
            return label
    return "Unexpected error"


def handle_command_errors(func: Callable) -> Callable:
    """Report command failures as a single red line and abort.

    click's own exceptions (usage errors, ``Abort``) pass through untouched.
    The traceback is kept at DEBUG level for ``--verbose`` runs.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.Abort):
            raise
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            console.print(f"[red]{_label_for(e)}:[/red] {e}", highlight=False)
            raise click.Abort() from e

    return wrapper
