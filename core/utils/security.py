"""
Security Utilities - Removal of decrypted working copies.
"""

import os
from pathlib import Path
from typing import Optional

from core.config import Config
from core.journal.errors import JournalIOError
from core.utils import console

# Files above this size are unlinked without being overwritten first
MAX_OVERWRITE_SIZE = 100 * 1024 * 1024


def secure_delete(path: Path, passes: Optional[int] = None) -> None:
    """
    Overwrite a file with random bytes, then unlink it.

    Overwriting is best effort on SSDs and copy-on-write filesystems; the unlink
    is what the journal relies on.

    Args:
        path: Path to the file to delete
        passes: Number of overwrite passes (default: Config.SECURE_DELETE_PASSES)

    Raises:
        JournalIOError: If the file cannot be overwritten or removed
    """
    path = Path(path)
    if not path.exists():
        return

    passes = Config.SECURE_DELETE_PASSES if passes is None else passes

    try:
        file_size = path.stat().st_size

        if 0 < file_size <= MAX_OVERWRITE_SIZE and passes > 0:
            console.debug(f"Overwriting {path} ({passes} pass(es))")
            with open(path, "r+b") as f:
                for _ in range(passes):
                    f.seek(0)
                    f.write(os.urandom(file_size))
                    f.flush()
                    os.fsync(f.fileno())

        path.unlink()
    except OSError as e:
        raise JournalIOError("removing", path, e) from e
