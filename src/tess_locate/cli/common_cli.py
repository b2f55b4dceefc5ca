"""Shared helpers for click-based `tess-locate` commands."""

from __future__ import annotations

import logging

import click

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_RUNTIME_ERROR = 2
EXIT_DATA_UNAVAILABLE = 4

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class LocateCliError(click.ClickException):
    """Click exception with explicit exit-code control."""

    def __init__(self, message: str, *, exit_code: int = EXIT_INPUT_ERROR) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)


def configure_logging(verbosity: int) -> None:
    """Route library logging to stderr: WARNING by default, -v INFO, -vv DEBUG."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=_LOG_FORMAT, force=True)


def echo_err(message: str, *, nl: bool = True) -> None:
    click.echo(message, err=True, nl=nl)
