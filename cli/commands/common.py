"""
Shared helpers for journal commands.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich import print
from rich.markup import escape

from core.journal.errors import JournalError, NotInitializedError
from core.journal.journal import Journal

DIRECTORY_ARGUMENT = typer.Argument(
    None, help="Journal directory (defaults to the current directory)"
)


def resolve_directory(directory: Optional[Path]) -> Path:
    return (directory or Path.cwd()).expanduser().resolve()


@contextmanager
def journal_errors(action: str) -> Iterator[None]:
    """
    Turn journal failures into a message and an exit code.

    A missing .gpgid is guidance, not a failure, and exits 0.
    """
    try:
        yield
    except NotInitializedError as e:
        print(f"[yellow]Journal directory is not initialised:[/yellow] {escape(str(e.root))}")
        print("  Run 'journal init RECIPIENT' to set it up.")
        raise typer.Exit(code=0)
    except (JournalError, ValueError) as e:
        print(f"[red]❌ {action} failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def open_journal(directory: Optional[Path]) -> Journal:
    return Journal(resolve_directory(directory))
