"""
GnuPG Cipher - Seals and opens journal files by shelling out to gpg.
"""

import subprocess
from pathlib import Path
from typing import List, Optional

from core.config import Config
from core.encryption.base import Cipher
from core.journal.errors import ExternalToolError
from core.utils import console


class GpgCipher(Cipher):
    """
    Runs gpg non-interactively (--batch --yes) for every file.
    """

    name = "gpg"

    def __init__(self, command: Optional[str] = None):
        self.command = command or Config.GPG_COMMAND

    def encrypt(self, plaintext_path: Path, encrypted_path: Path, recipient: str) -> None:
        args = [
            "--batch",
            "--yes",
            "--recipient",
            recipient,
            "--output",
            str(encrypted_path),
            "--encrypt",
            str(plaintext_path),
        ]
        self._run(args, "encrypting", plaintext_path)

    def decrypt(self, encrypted_path: Path, plaintext_path: Path, recipient: str) -> None:
        # gpg selects the secret key from the message itself
        args = [
            "--batch",
            "--yes",
            "--output",
            str(plaintext_path),
            "--decrypt",
            str(encrypted_path),
        ]
        self._run(args, "decrypting", encrypted_path)

    def _run(self, args: List[str], action: str, path: Path) -> None:
        cmd = [self.command, *args]
        console.debug(f"Executing {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise ExternalToolError(action, path, e) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            cause = stderr.splitlines()[-1] if stderr else f"{self.command} exited with status {result.returncode}"
            raise ExternalToolError(
                action, path, cause, returncode=result.returncode, stderr=stderr
            )
