from pathlib import Path
from typing import Optional

from rich import print
from rich.console import Console
from rich.table import Table

from cli.commands.common import DIRECTORY_ARGUMENT, journal_errors, open_journal
from core.config import Config
from core.journal.pair import EXPOSED, HIDDEN, MISSING, OPEN, SEALED

STATE_STYLES = {
    SEALED: "[green]sealed[/green]",
    OPEN: "[yellow]open[/yellow]",
    HIDDEN: "[red]hidden, no working copy[/red]",
    EXPOSED: "[red]exposed[/red]",
    MISSING: "[red]missing[/red]",
}


def status(directory: Optional[Path] = DIRECTORY_ARGUMENT):
    """
    Show whether a journal is locked and which working copies were edited.
    """
    with journal_errors("Status"):
        journal = open_journal(directory)
        report = journal.status()

        print("[blue]Journal Status[/blue]")
        print(f"[green]Directory:[/green] {report.root}")
        print(f"[green]Recipient:[/green] {report.recipient or '[red]empty[/red]'}")
        print(f"[green]Cipher:[/green] {journal.cipher.name}")

        if report.has_checklist:
            print("[yellow]Checklist:[/yellow] present, journal is unlocked. Run 'journal lock' when done.")
        elif report.unlocked:
            print("[red]Checklist:[/red] missing while files are open. Run 'journal unlock' to snapshot them.")
        else:
            print("[green]Checklist:[/green] none, journal is locked.")

        if not report.pairs:
            print(f"[yellow]No {Config.ENCRYPTED_EXT} files found.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold blue")
        table.add_column("File")
        table.add_column("State", justify="center")
        table.add_column("Modified", justify="center")

        for entry in report.pairs:
            if entry.modified is None:
                modified = "[dim]-[/dim]"
            else:
                modified = "[yellow]yes[/yellow]" if entry.modified else "no"
            table.add_row(
                str(entry.pair.encrypted_path.relative_to(report.root)),
                STATE_STYLES.get(entry.state, entry.state),
                modified,
            )

        Console().print(table)
