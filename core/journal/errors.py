"""
Journal Errors - Exception hierarchy raised by the lock/unlock engine.

Every failure surfaces at the operation boundary (unlock, lock, status) as one
of these types; the CLI turns them into a message and an exit code.
"""

from pathlib import Path
from typing import Optional, Union


class JournalError(Exception):
    """Base class for all journal failures."""


class NotInitializedError(JournalError):
    """The journal root has no recipient identity file."""

    def __init__(self, root: Union[Path, str]):
        self.root = Path(root)
        super().__init__(
            f"Journal directory is not initialised: {self.root}. Run journal init."
        )


class MissingChecklistError(JournalError):
    """Lock was invoked without a checklist from a prior unlock."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)
        super().__init__(
            f"Could not find checklist file {self.path}. Run journal unlock first."
        )


class JournalIOError(JournalError):
    """A read, write, rename or remove on a journal file failed."""

    def __init__(self, action: str, path: Union[Path, str], cause: Exception):
        self.action = action
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Error {action} {self.path}: {cause}")


class ExternalToolError(JournalError):
    """The encryption or decryption capability reported a failure."""

    def __init__(
        self,
        action: str,
        path: Union[Path, str],
        cause: Union[Exception, str],
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.action = action
        self.path = Path(path)
        self.cause = cause
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Error {action} file {self.path}: {cause}")


class ChecklistParseError(JournalError):
    """A persisted checklist line is malformed."""

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed checklist line {line_number}: {reason}: {line!r}")
