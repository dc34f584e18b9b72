import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from core.journal.errors import JournalIOError
from core.utils.security import secure_delete


def test_secure_delete_removes_file():
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / "plain.txt"
        path.write_bytes(b"sensitive" * 100)

        secure_delete(path, passes=2)

        assert not path.exists()


def test_secure_delete_empty_and_missing_files():
    with tempfile.TemporaryDirectory() as tmp_dir:
        empty = Path(tmp_dir) / "empty"
        empty.touch()

        secure_delete(empty)
        secure_delete(Path(tmp_dir) / "never-existed")

        assert not empty.exists()


def test_secure_delete_wraps_os_errors():
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / "plain.txt"
        path.write_bytes(b"data")

        with patch.object(Path, "unlink", side_effect=PermissionError("read-only")):
            with pytest.raises(JournalIOError) as exc:
                secure_delete(path, passes=0)

        assert exc.value.path == path
