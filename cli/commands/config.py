import typer
from rich import print
from pathlib import Path
import dotenv

from core.config import Config

app = typer.Typer()

SETTINGS = {
    "JOURNAL_ENCRYPTED_EXT": "ENCRYPTED_EXT",
    "JOURNAL_CIPHER": "CIPHER",
    "JOURNAL_GPG_COMMAND": "GPG_COMMAND",
    "JOURNAL_KEYS_DIR": "KEYS_DIR",
    "JOURNAL_PIPELINE": "PIPELINE",
    "JOURNAL_QUEUE_SIZE": "QUEUE_SIZE",
    "JOURNAL_DECRYPT_WORKERS": "DECRYPT_WORKERS",
    "JOURNAL_SECURE_DELETE_PASSES": "SECURE_DELETE_PASSES",
    "JOURNAL_VERBOSE": "VERBOSE",
}


@app.command("show")
def show_config():
    """
    Display the current configuration.
    """
    print("[blue]Current Configuration:[/blue]")
    for env_name, attr in SETTINGS.items():
        print(f"[green]{env_name}:[/green] {getattr(Config, attr)}")


@app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Configuration key to set (e.g., JOURNAL_CIPHER)"),
    value: str = typer.Argument(..., help="Value to set for the configuration key"),
):
    """
    Set a configuration value in the .env file.
    """
    key = key.upper()
    if key not in SETTINGS:
        print(f"[red]❌ Unknown setting:[/red] {key}")
        print(f"[yellow]Known settings:[/yellow] {', '.join(SETTINGS)}")
        raise typer.Exit(code=1)

    env_file = Path(".env")
    if not env_file.exists():
        env_file.touch()
        print("[green]Created empty .env file[/green]")

    dotenv.set_key(str(env_file), key, value)

    print(f"[green]✅ Successfully set {key}=[/green] {value}")
    print(
        "[yellow]Note: You need to restart the application for changes to take effect.[/yellow]"
    )
