"""
CLI Error Handling
==================

Maps exceptions to messages and exit codes for the godsl command.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from godsl.errors import GodslError


class ExitCode(IntEnum):
    """Exit codes for the godsl command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Parse errors or failed generation
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report error on stderr and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print a traceback for internal errors

    Raises:
        SystemExit: Always
    """
    if isinstance(error, GodslError):
        # Messages already carry their own header
        click.echo(str(error).rstrip(), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
