"""
Walk Utilities - Deterministic directory traversal shared by discovery and fingerprinting.
"""

import os
import stat
from pathlib import Path
from typing import Iterator, Tuple

from core.config import HIDDEN_MARKER
from core.journal.errors import JournalIOError


def _raise(err: OSError) -> None:
    raise JournalIOError("walking", err.filename or "", err)


def _visible_name_key(name: str) -> Tuple[str, str]:
    return name.lstrip(HIDDEN_MARKER), name


def walk_files(root: Path) -> Iterator[Tuple[Path, os.stat_result]]:
    """
    Yield every regular file under root together with its stat result.

    Directories and files are visited in name order so two walks over an
    unchanged tree produce the same sequence. Files sort by their name without
    the hidden marker, so a footprint keeps its place. Hidden directories are
    pruned.

    Args:
        root: Directory to walk

    Yields:
        Tuple[Path, os.stat_result]: Absolute file path and its stat info
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(HIDDEN_MARKER))
        for name in sorted(filenames, key=_visible_name_key):
            path = Path(dirpath) / name
            try:
                info = path.stat()
            except OSError as e:
                raise JournalIOError("reading", path, e) from e
            if not stat.S_ISREG(info.st_mode):
                continue
            yield path, info
