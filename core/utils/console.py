from rich.console import Console

from core.config import Config

console = Console(stderr=True, highlight=False)

_verbose = Config.VERBOSE


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def info(msg): console.print(f"ℹ️  {msg}", style="blue", markup=False)
def success(msg): console.print(f"✅ {msg}", style="green", markup=False)
def warning(msg): console.print(f"⚠️  {msg}", style="yellow", markup=False)
def error(msg): console.print(f"❌ {msg}", style="red", markup=False)


def debug(msg):
    if _verbose:
        console.print(f"🔍 {msg}", style="dim", markup=False)
