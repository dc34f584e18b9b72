"""
Unlock Command - Decrypt a journal into editable working copies.
"""

from pathlib import Path
from typing import Optional

import typer
from rich import print

from cli.commands.common import DIRECTORY_ARGUMENT, journal_errors, open_journal


def unlock(
    directory: Optional[Path] = DIRECTORY_ARGUMENT,
    pipeline: Optional[bool] = typer.Option(
        None,
        "--pipeline/--sequential",
        help="Overlap decryption and fingerprinting (default from JOURNAL_PIPELINE)",
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Concurrent decrypt workers in pipeline mode"
    ),
):
    """
    Open a directory of encrypted text files.
    """
    with journal_errors("Unlock"):
        journal = open_journal(directory)

        if not journal.files:
            print(f"[yellow]No encrypted files found in {journal.root}[/yellow]")
            return

        print(f"[blue]🔓 Unlocking {len(journal.files)} file(s) in {journal.root}[/blue]")
        result = journal.unlock(pipeline=pipeline, decrypt_workers=workers)

        for pair in result.kept:
            print(f"[dim]• kept working copy {pair.plaintext_path.name}[/dim]")
        print(
            f"[green]✅ Unlocked {len(result.opened)} file(s);[/green] "
            f"{result.recorded} fingerprint(s) written to {result.checklist_path}"
        )
