"""
Terminal Output Helpers.

Server responses are written to stdout unchanged with click.echo.
Messages from tomcatctl itself go to stderr through rich.
"""

import click
from rich.console import Console

err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def echo_response(text: str) -> None:
    """Write response text to stdout, ending it with exactly one newline if it has none."""
    click.echo(text, nl=not text.endswith("\n"))


def echo_error_body(text: str) -> None:
    """Write the body of a failed response to stderr."""
    if text.strip():
        click.echo(text.rstrip("\n"), err=True)


def print_error(message: str) -> None:
    err_console.print(message, style="bold red", markup=False)


def print_warning(message: str) -> None:
    err_console.print(message, style="yellow", markup=False)
