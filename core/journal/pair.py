"""
File Pair - One journal document as an encrypted artifact and its plaintext working copy.

Whether a pair is open is never stored anywhere: an open pair has its
ciphertext renamed to a hidden "footprint" (".name.gpg"), so the directory
itself records the state and survives restarts.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from core.config import HIDDEN_MARKER
from core.journal.errors import JournalIOError
from core.utils.security import secure_delete

SEALED = "sealed"
OPEN = "open"
HIDDEN = "hidden"
EXPOSED = "exposed"
MISSING = "missing"


def footprint_name(name: str) -> str:
    return HIDDEN_MARKER + name


@dataclass(frozen=True)
class FilePair:
    encrypted_path: Path
    plaintext_path: Path

    @classmethod
    def from_artifact(cls, path: Path, suffix: str) -> Optional["FilePair"]:
        """
        Build the pair an encrypted artifact belongs to.

        Both "name.gpg" and its footprint ".name.gpg" map to the pair whose
        encrypted path is "name.gpg". Returns None if path lacks the suffix.

        A ciphertext whose own name starts with the hidden marker, such as
        ".bashrc.gpg", cannot be told apart from a footprint: it is opened as
        "bashrc" and locked back as "bashrc.gpg".
        """
        path = Path(path)
        if path.suffix != suffix:
            return None

        name = path.name
        if name.startswith(HIDDEN_MARKER):
            name = name[len(HIDDEN_MARKER):]
        if name == suffix or not name.endswith(suffix):
            return None

        encrypted_path = path.with_name(name)
        return cls(
            encrypted_path=encrypted_path,
            plaintext_path=encrypted_path.with_name(name[: -len(suffix)]),
        )

    @property
    def footprint_path(self) -> Path:
        return self.encrypted_path.with_name(footprint_name(self.encrypted_path.name))

    @property
    def visible(self) -> bool:
        return not self.footprint_path.exists()

    @property
    def has_plaintext(self) -> bool:
        return self.plaintext_path.exists()

    @property
    def is_open(self) -> bool:
        return not self.visible and self.has_plaintext

    @property
    def current_path(self) -> Path:
        """Where the ciphertext currently lives."""
        return self.encrypted_path if self.visible else self.footprint_path

    @property
    def state(self) -> str:
        hidden = self.footprint_path.exists()
        plain = self.has_plaintext
        if hidden:
            return OPEN if plain else HIDDEN
        if self.encrypted_path.exists():
            return EXPOSED if plain else SEALED
        return MISSING

    def leave_footprint(self) -> None:
        """Hide the ciphertext while its working copy is open."""
        if not self.visible:
            return
        try:
            os.replace(self.encrypted_path, self.footprint_path)
        except OSError as e:
            raise JournalIOError("creating file footprint", self.encrypted_path, e) from e

    def reset(self) -> None:
        """Make the untouched ciphertext visible again under its normal name."""
        if self.visible:
            return
        try:
            os.replace(self.footprint_path, self.encrypted_path)
        except OSError as e:
            raise JournalIOError("restoring file footprint", self.footprint_path, e) from e

    def remove_footprint(self) -> None:
        """Drop the stale hidden ciphertext once a fresh one has been written."""
        try:
            self.footprint_path.unlink(missing_ok=True)
        except OSError as e:
            raise JournalIOError("removing file footprint", self.footprint_path, e) from e

    def remove_plaintext(self) -> None:
        secure_delete(self.plaintext_path)

    def relative_to(self, root: Path) -> str:
        return self.plaintext_path.relative_to(root).as_posix()
