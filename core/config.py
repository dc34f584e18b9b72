import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


GPGID_FILENAME = ".gpgid"
CHECKLIST_FILENAME = ".check"
HIDDEN_MARKER = "."


class Config:
    ENCRYPTED_EXT = os.getenv("JOURNAL_ENCRYPTED_EXT", ".gpg")
    CIPHER = os.getenv("JOURNAL_CIPHER", "gpg")
    GPG_COMMAND = os.getenv("JOURNAL_GPG_COMMAND", "gpg")
    KEYS_DIR = os.getenv("JOURNAL_KEYS_DIR", "~/.journal/keys")

    # Unlock pipeline
    PIPELINE = _as_bool(os.getenv("JOURNAL_PIPELINE", "true"))
    QUEUE_SIZE = int(os.getenv("JOURNAL_QUEUE_SIZE", "8"))
    DECRYPT_WORKERS = int(os.getenv("JOURNAL_DECRYPT_WORKERS", "1"))

    SECURE_DELETE_PASSES = int(os.getenv("JOURNAL_SECURE_DELETE_PASSES", "1"))
    VERBOSE = _as_bool(os.getenv("JOURNAL_VERBOSE", "false"))
