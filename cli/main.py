"""
Journal CLI - Command table and application factory.
"""

from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as distribution_version
from typing import Callable, Sequence, Union

import typer
from rich import print

from cli.commands import config, init, lock, status, unlock
from core.utils import console


@dataclass(frozen=True)
class CommandSpec:
    name: str
    handler: Union[Callable, typer.Typer]
    help: str


def show_version():
    """
    Show journal version information.
    """
    try:
        version = distribution_version("journal")
    except PackageNotFoundError:
        version = "development"

    print(f"[blue]📓 Journal[/blue] version [green]{version}[/green]")


def default_commands() -> Sequence[CommandSpec]:
    return (
        CommandSpec("init", init.init, "Initialise a journal directory"),
        CommandSpec("unlock", unlock.unlock, "Open a directory of encrypted text files"),
        CommandSpec("lock", lock.lock, "Re-encrypt changed files and close the journal"),
        CommandSpec("status", status.status, "Show the lock state of a journal"),
        CommandSpec("config", config.app, "Show or change journal settings"),
        CommandSpec("version", show_version, "Show version information"),
    )


def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print every external command"),
):
    """
    📓 Journal - keep a directory of text files encrypted at rest.

    Unlock to edit plaintext working copies, lock to re-encrypt only what changed.
    """
    if verbose:
        console.set_verbose(True)


def create_app(commands: Sequence[CommandSpec]) -> typer.Typer:
    """Build the typer application from an explicit command table."""
    app = typer.Typer(
        name="journal",
        help="Encryption helper for directories of text files",
        no_args_is_help=True,
    )
    app.callback()(_main)

    for spec in commands:
        if isinstance(spec.handler, typer.Typer):
            app.add_typer(spec.handler, name=spec.name, help=spec.help)
        else:
            app.command(spec.name, help=spec.help)(spec.handler)

    return app
