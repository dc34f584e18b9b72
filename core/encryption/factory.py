from typing import Optional

from core.config import Config
from core.encryption.base import Cipher
from core.encryption.fernet import FernetCipher
from core.encryption.gpg import GpgCipher


def get_cipher(name: Optional[str] = None) -> Cipher:
    name = name or Config.CIPHER
    if name == "gpg":
        return GpgCipher()
    if name == "fernet":
        return FernetCipher()
    raise ValueError(f"Unknown cipher: {name}")
