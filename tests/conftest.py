import threading
from pathlib import Path

import pytest
from dotenv import load_dotenv

from core.config import Config
from core.encryption.base import Cipher
from core.encryption.fernet import FernetCipher, generate_key
from core.journal.errors import ExternalToolError
from core.journal.journal import Journal

RECIPIENT = "journal-test@example.com"


@pytest.fixture(autouse=True, scope="session")
def load_test_env():
    """
    Automatically load environment variables from `.env.test` for all test sessions.
    """
    env_path = Path(".env.test")
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=True)
        print("📦 Test environment loaded from .env.test")
    else:
        print("⚠️  No .env.test file found. Using default environment.")


class RecordingCipher(Cipher):
    """
    Wraps a real cipher, records every call and fails on request.

    fail_decrypt holds encrypted file names (without hidden marker),
    fail_encrypt holds plaintext file names.
    """

    name = "recording"

    def __init__(self, inner: Cipher, fail_decrypt=(), fail_encrypt=()):
        self.inner = inner
        self.fail_decrypt = set(fail_decrypt)
        self.fail_encrypt = set(fail_encrypt)
        self.encrypted = []
        self.decrypted = []
        self._lock = threading.Lock()

    def encrypt(self, plaintext_path, encrypted_path, recipient):
        with self._lock:
            self.encrypted.append(Path(plaintext_path).name)
        if Path(plaintext_path).name in self.fail_encrypt:
            raise ExternalToolError("encrypting", plaintext_path, "gpg: no public key")
        self.inner.encrypt(plaintext_path, encrypted_path, recipient)

    def decrypt(self, encrypted_path, plaintext_path, recipient):
        name = Path(encrypted_path).name.lstrip(".")
        with self._lock:
            self.decrypted.append(name)
        if name in self.fail_decrypt:
            raise ExternalToolError("decrypting", encrypted_path, "gpg: decryption failed: No secret key")
        self.inner.decrypt(encrypted_path, plaintext_path, recipient)


@pytest.fixture
def keys_dir(tmp_path, monkeypatch):
    keys = tmp_path / "keys"
    monkeypatch.setattr(Config, "KEYS_DIR", str(keys))
    monkeypatch.setattr(Config, "CIPHER", "fernet")
    generate_key(RECIPIENT, keys)
    return keys


@pytest.fixture
def cipher(keys_dir):
    return FernetCipher(keys_dir)


@pytest.fixture
def journal_dir(tmp_path, keys_dir):
    root = tmp_path / "journal"
    root.mkdir()
    Journal.init(root, RECIPIENT)
    return root


@pytest.fixture
def seal(cipher):
    """Create an encrypted artifact <root>/<name>.gpg holding content."""

    def _seal(root: Path, name: str, content: bytes) -> Path:
        plain = root / name
        plain.parent.mkdir(parents=True, exist_ok=True)
        plain.write_bytes(content)
        encrypted = plain.with_name(plain.name + ".gpg")
        cipher.encrypt(plain, encrypted, RECIPIENT)
        plain.unlink()
        return encrypted

    return _seal
