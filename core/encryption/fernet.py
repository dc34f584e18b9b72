"""
Fernet Cipher - Symmetric AES encryption of journal files with per-recipient key files.
"""

import zlib
from pathlib import Path
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from core.config import Config
from core.encryption.base import Cipher
from core.journal.errors import ExternalToolError
from core.utils import console

# Magic header for identifying journal encrypted files
MAGIC_HEADER = b"JOURNALv1\n"


def key_path_for(recipient: str, keys_dir: Union[Path, str, None] = None) -> Path:
    """Return the key file location for a recipient."""
    base = Path(keys_dir or Config.KEYS_DIR).expanduser()
    return base / f"{recipient}.key"


def generate_key(recipient: str, keys_dir: Union[Path, str, None] = None) -> Path:
    """
    Generate a Fernet key for recipient if none exists yet.

    Returns:
        Path: Location of the (new or existing) key file.
    """
    key_path = key_path_for(recipient, keys_dir)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    if key_path.exists():
        console.info(f"Fernet key already exists at {key_path}")
        return key_path

    key_path.write_bytes(Fernet.generate_key())
    key_path.chmod(0o600)
    console.success(f"Fernet key generated at {key_path}")
    return key_path


class FernetCipher(Cipher):
    """
    Encrypts with Fernet (AES-128-CBC + HMAC-SHA256), compressing the content first.
    The recipient names the key file under the keys directory.
    """

    name = "fernet"

    def __init__(self, keys_dir: Union[Path, str, None] = None):
        self.keys_dir = Path(keys_dir or Config.KEYS_DIR).expanduser()
        self._fernets = {}

    def _fernet(self, recipient: str, action: str, path: Path) -> Fernet:
        if recipient not in self._fernets:
            key_path = key_path_for(recipient, self.keys_dir)
            try:
                key = key_path.read_bytes().strip()
            except OSError as e:
                raise ExternalToolError(action, path, f"no key for recipient {recipient!r}: {e}") from e
            try:
                self._fernets[recipient] = Fernet(key)
            except ValueError as e:
                raise ExternalToolError(action, path, f"invalid key file {key_path}: {e}") from e
        return self._fernets[recipient]

    def encrypt(self, plaintext_path: Path, encrypted_path: Path, recipient: str) -> None:
        fernet = self._fernet(recipient, "encrypting", plaintext_path)
        try:
            content = Path(plaintext_path).read_bytes()
            encrypted = fernet.encrypt(zlib.compress(content, level=9))
            Path(encrypted_path).write_bytes(MAGIC_HEADER + encrypted)
        except OSError as e:
            raise ExternalToolError("encrypting", plaintext_path, e) from e

    def decrypt(self, encrypted_path: Path, plaintext_path: Path, recipient: str) -> None:
        fernet = self._fernet(recipient, "decrypting", encrypted_path)
        try:
            encrypted = Path(encrypted_path).read_bytes()
        except OSError as e:
            raise ExternalToolError("decrypting", encrypted_path, e) from e

        if not encrypted.startswith(MAGIC_HEADER):
            raise ExternalToolError("decrypting", encrypted_path, "invalid or missing journal magic header")

        try:
            content = zlib.decompress(fernet.decrypt(encrypted[len(MAGIC_HEADER):]))
        except (InvalidToken, zlib.error):
            raise ExternalToolError("decrypting", encrypted_path, "wrong key or corrupted file") from None

        try:
            Path(plaintext_path).write_bytes(content)
        except OSError as e:
            raise ExternalToolError("decrypting", encrypted_path, e) from e
