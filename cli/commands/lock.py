"""
Lock Command - Re-encrypt edited working copies and close the journal.
"""

from pathlib import Path
from typing import Optional

from rich import print

from cli.commands.common import DIRECTORY_ARGUMENT, journal_errors, open_journal


def lock(directory: Optional[Path] = DIRECTORY_ARGUMENT):
    """
    Seal an unlocked journal, re-encrypting only the files that changed.
    """
    with journal_errors("Lock"):
        journal = open_journal(directory)

        print(f"[blue]🔐 Locking {journal.root}[/blue]")
        result = journal.lock()

        for pair in result.reencrypted:
            print(f"[green]✓ Re-encrypted:[/green] {pair.encrypted_path.relative_to(journal.root)}")
        print(
            f"[green]✅ Locked:[/green] {len(result.reencrypted)} re-encrypted, "
            f"{len(result.revealed)} unchanged"
        )
