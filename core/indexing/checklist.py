"""
Checklist - Ordered store of (path, fingerprint) entries used to detect edited working copies.
"""

import os
import re
import threading
from pathlib import Path
from typing import Callable, Iterator, List, Mapping, Optional, TextIO, Tuple, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.backends import default_backend

from core.config import CHECKLIST_FILENAME
from core.journal.errors import ChecklistParseError, JournalIOError
from core.utils.walk import walk_files

FINGERPRINT_WIDTH = 32
_FINGERPRINT_RE = re.compile(r"^[0-9a-f]{%d}$" % FINGERPRINT_WIDTH)

FileFilter = Callable[[Path, os.stat_result], bool]


def hash_file(path: Path) -> str:
    """
    Compute the MD5 fingerprint of a file.

    Args:
        path (Path): Path to the file.

    Returns:
        str: MD5 digest as a 32 char lowercase hex string.
    """
    digest = hashes.Hash(hashes.MD5(), backend=default_backend())
    try:
        with Path(path).open("rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                digest.update(chunk)
    except OSError as e:
        raise JournalIOError("reading", path, e) from e
    return digest.finalize().hex()


def non_hidden_files(path: Path, _info: os.stat_result) -> bool:
    """Accept every file whose base name does not start with the hidden marker."""
    return not path.name.startswith(".")


class Checklist:
    """
    An ordered collection of (relative path, fingerprint) pairs rooted at a directory.

    Paths are unique and kept in insertion order, which is also the order they
    are written in.
    """

    def __init__(self, root: Union[Path, str]):
        self.root = Path(root)
        self._entries: List[Tuple[str, str]] = []
        self._paths = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries)

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    @property
    def entries(self) -> List[Tuple[str, str]]:
        return list(self._entries)

    def relative(self, path: Union[Path, str]) -> str:
        """Return the key under which path is stored in this checklist."""
        path = Path(path)
        if path.is_absolute():
            path = path.relative_to(self.root)
        return path.as_posix()

    def add_file(self, path: Union[Path, str], fingerprint: str) -> None:
        key = self.relative(path)
        if key in self._paths:
            raise ValueError(f"Path already recorded in checklist: {key}")
        self._paths.add(key)
        self._entries.append((key, fingerprint))

    def collect(self, path: Union[Path, str]) -> None:
        """Fingerprint the file at path and record it."""
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        self.add_file(path, hash_file(path))

    @classmethod
    def from_dir(
        cls,
        root: Union[Path, str],
        file_filter: FileFilter = non_hidden_files,
        known: Optional[Mapping[Path, str]] = None,
    ) -> "Checklist":
        """
        Build a checklist by fingerprinting every accepted file under root.

        Files listed in known are recorded with the given fingerprint instead
        of their live content. The walk aborts on the first unreadable file.
        """
        known = known or {}
        checklist = cls(root)
        for path, info in walk_files(checklist.root):
            if not file_filter(path, info):
                continue
            if path in known:
                checklist.add_file(path, known[path])
            else:
                checklist.collect(path)
        return checklist

    @classmethod
    def from_reader(cls, stream: TextIO, root: Union[Path, str]) -> "Checklist":
        """
        Parse a serialized checklist, one "<fingerprint> <path>" record per line.

        The path runs verbatim from the first space to the end of the line.
        """
        checklist = cls(root)
        line_number = 0
        while True:
            try:
                line = stream.readline()
            except (OSError, UnicodeDecodeError) as e:
                raise JournalIOError("reading checklist", getattr(stream, "name", "<stream>"), e) from e
            if line == "":
                break

            line_number += 1
            record = line[:-1] if line.endswith("\n") else line
            if not record.strip():
                continue

            fingerprint, sep, path = record.partition(" ")
            if not sep:
                raise ChecklistParseError(line_number, record, "missing separator")
            if not _FINGERPRINT_RE.match(fingerprint):
                raise ChecklistParseError(line_number, record, "invalid fingerprint")
            if not path:
                raise ChecklistParseError(line_number, record, "empty path")
            try:
                key = checklist.relative(path)
            except ValueError:
                raise ChecklistParseError(line_number, record, "path outside journal root") from None
            if key in checklist:
                raise ChecklistParseError(line_number, record, "duplicate path")
            checklist.add_file(key, fingerprint)

        return checklist

    @classmethod
    def load(cls, path: Union[Path, str], root: Union[Path, str]) -> "Checklist":
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8", newline="\n") as f:
                return cls.from_reader(f, root)
        except OSError as e:
            raise JournalIOError("opening checklist", path, e) from e

    def diff(self) -> List[str]:
        """
        Return the stored paths whose live content no longer matches the fingerprint.

        A file that disappeared since the snapshot is an error, not a change.
        """
        changed = []
        for path, fingerprint in self._entries:
            if hash_file(self.root / path) != fingerprint:
                changed.append(path)
        return changed

    def write(self, stream: TextIO) -> None:
        for path, fingerprint in self._entries:
            stream.write(f"{fingerprint} {path}\n")

    def save(self, path: Union[Path, str, None] = None) -> Path:
        """
        Write the checklist to path (default: <root>/.check).

        The content goes to a temporary sibling first and replaces the target
        only once fully written.
        """
        path = Path(path) if path is not None else self.root / CHECKLIST_FILENAME
        writer = ChecklistWriter(path)
        try:
            for entry_path, fingerprint in self._entries:
                writer.append(entry_path, fingerprint)
        except BaseException:
            writer.discard()
            raise
        writer.commit()
        return path


class ChecklistWriter:
    """
    Thread-safe, append-only checklist output.

    Records go to "<target>.tmp"; commit() atomically moves it over the target,
    discard() drops it and leaves any previous target untouched.
    """

    def __init__(self, target: Union[Path, str]):
        self.target = Path(target)
        self.temp_path = self.target.with_name(self.target.name + ".tmp")
        self._lock = threading.Lock()
        self._count = 0
        self._closed = False
        try:
            self._file = self.temp_path.open("w", encoding="utf-8", newline="\n")
        except OSError as e:
            raise JournalIOError("creating checklist file", self.temp_path, e) from e

    @property
    def count(self) -> int:
        return self._count

    def append(self, path: str, fingerprint: str) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Checklist writer is already closed")
            try:
                self._file.write(f"{fingerprint} {path}\n")
            except OSError as e:
                raise JournalIOError("writing checklist file", self.temp_path, e) from e
            self._count += 1

    def commit(self) -> None:
        with self._lock:
            self._closed = True
            try:
                self._file.flush()
                os.fsync(self._file.fileno())
                self._file.close()
                self.temp_path.replace(self.target)
            except OSError as e:
                self._file.close()
                self.temp_path.unlink(missing_ok=True)
                raise JournalIOError("writing checklist file", self.target, e) from e

    def discard(self) -> None:
        with self._lock:
            self._closed = True
            self._file.close()
            self.temp_path.unlink(missing_ok=True)
