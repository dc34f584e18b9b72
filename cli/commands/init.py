from pathlib import Path
from typing import Optional

import typer
from rich import print

from cli.commands.common import DIRECTORY_ARGUMENT, journal_errors, resolve_directory
from core.config import Config
from core.encryption.fernet import generate_key
from core.journal.journal import Journal


def init(
    recipient: str = typer.Argument(..., help="Recipient identity (gpg key id, email or key name)"),
    directory: Optional[Path] = DIRECTORY_ARGUMENT,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing .gpgid"),
    generate: bool = typer.Option(
        False, "--generate-key", help="Create a Fernet key for the recipient (fernet cipher only)"
    ),
):
    """
    Initialise a journal directory for a recipient.
    """
    with journal_errors("Init"):
        if generate and Config.CIPHER != "fernet":
            raise ValueError("--generate-key requires JOURNAL_CIPHER=fernet")

        gpgid_path = Journal.init(resolve_directory(directory), recipient, force=force)
        print(f"[green]✅ Journal initialised:[/green] {gpgid_path}")

        if generate:
            generate_key(recipient.strip())
