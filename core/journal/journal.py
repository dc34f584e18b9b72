"""
Journal - Lock/unlock synchronization engine for a directory of encrypted files.

unlock() decrypts every pair into a working copy, hides the ciphertext and
snapshots the plaintext fingerprints into ".check". lock() diffs the working
copies against that snapshot, re-encrypts only what changed, reveals the
untouched ciphertexts, then removes the working copies and the snapshot.
"""

import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from core.config import CHECKLIST_FILENAME, GPGID_FILENAME, HIDDEN_MARKER, Config
from core.encryption.base import Cipher
from core.encryption.factory import get_cipher
from core.indexing.checklist import Checklist, ChecklistWriter, hash_file, non_hidden_files
from core.journal.errors import (
    JournalError,
    JournalIOError,
    MissingChecklistError,
    NotInitializedError,
)
from core.journal.pair import EXPOSED, OPEN, FilePair
from core.journal.pipeline import PipelineRunner
from core.utils import console
from core.utils.security import secure_delete
from core.utils.walk import walk_files


@dataclass
class UnlockResult:
    opened: List[FilePair] = field(default_factory=list)
    kept: List[FilePair] = field(default_factory=list)
    checklist_path: Optional[Path] = None
    recorded: int = 0


@dataclass
class LockResult:
    reencrypted: List[FilePair] = field(default_factory=list)
    revealed: List[FilePair] = field(default_factory=list)


@dataclass
class PairStatus:
    pair: FilePair
    state: str
    modified: Optional[bool] = None


@dataclass
class JournalStatus:
    root: Path
    recipient: str
    has_checklist: bool
    pairs: List[PairStatus] = field(default_factory=list)

    @property
    def unlocked(self) -> bool:
        return any(p.state == OPEN for p in self.pairs)


def read_recipient(root: Path) -> str:
    """
    Read the recipient identity from <root>/.gpgid.

    Raises:
        NotInitializedError: If the file does not exist
        JournalIOError: If it exists but cannot be read
    """
    gpgid_path = root / GPGID_FILENAME
    try:
        return gpgid_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        raise NotInitializedError(root) from None
    except OSError as e:
        raise JournalIOError("reading", gpgid_path, e) from e


class Journal:
    """
    A journal directory: its root, recipient, cipher and the file pairs found in it.
    """

    def __init__(
        self,
        root: Union[Path, str],
        cipher: Optional[Cipher] = None,
        encrypted_ext: Optional[str] = None,
    ):
        self.root = Path(root).expanduser().resolve()
        self.encrypted_ext = encrypted_ext or Config.ENCRYPTED_EXT
        self.cipher = cipher or get_cipher()
        self.recipient = read_recipient(self.root)
        self.files: List[FilePair] = self.discover()

        self._opened_lock = threading.Lock()
        self._opened: List[Tuple[FilePair, bool, bool]] = []

    @property
    def checklist_path(self) -> Path:
        return self.root / CHECKLIST_FILENAME

    @staticmethod
    def init(root: Union[Path, str], recipient: str, force: bool = False) -> Path:
        """
        Initialise a journal directory by writing its recipient identity.

        Returns:
            Path: The written .gpgid file
        """
        recipient = recipient.strip()
        if not recipient:
            raise ValueError("Recipient must not be empty")

        root = Path(root).expanduser().resolve()
        gpgid_path = root / GPGID_FILENAME
        if gpgid_path.exists() and not force:
            raise JournalError(f"Journal already initialised: {gpgid_path} exists")

        try:
            root.mkdir(parents=True, exist_ok=True)
            gpgid_path.write_text(recipient + "\n", encoding="utf-8")
        except OSError as e:
            raise JournalIOError("writing", gpgid_path, e) from e
        return gpgid_path

    def discover(self) -> List[FilePair]:
        """Find every encrypted artifact (visible or hidden) under the root, in walk order."""
        pairs = []
        seen = set()
        for path, _info in walk_files(self.root):
            pair = FilePair.from_artifact(path, self.encrypted_ext)
            if pair is None or pair.encrypted_path in seen:
                continue
            seen.add(pair.encrypted_path)
            pairs.append(pair)
        console.debug(f"Discovered {len(pairs)} encrypted file(s) under {self.root}")
        return pairs

    # -- unlock -----------------------------------------------------------

    def unlock(self, pipeline: Optional[bool] = None, decrypt_workers: Optional[int] = None) -> UnlockResult:
        """
        Open every pair and snapshot the working copies into .check.

        All or nothing: on any failure the pairs opened by this call are closed
        again and no new checklist is left behind.
        """
        pipeline = Config.PIPELINE if pipeline is None else pipeline
        self._opened = []

        try:
            if pipeline:
                recorded = self._unlock_pipeline(decrypt_workers)
            else:
                recorded = self._unlock_sequential()
        except BaseException:
            self._rollback()
            raise

        with self._opened_lock:
            opened = [pair for pair, decrypted, _hid in self._opened if decrypted]
        kept = [pair for pair in self.files if pair not in opened]
        return UnlockResult(
            opened=opened,
            kept=kept,
            checklist_path=self.checklist_path,
            recorded=recorded,
        )

    def _unlock_sequential(self) -> int:
        baselines: Dict[Path, str] = {}
        for pair in self.files:
            baseline = self._open_pair(pair)
            if baseline is not None:
                baselines[pair.plaintext_path] = baseline

        checklist = Checklist.from_dir(self.root, non_hidden_files, known=baselines)
        checklist.save(self.checklist_path)
        return len(checklist)

    def _unlock_pipeline(self, decrypt_workers: Optional[int]) -> int:
        writer = ChecklistWriter(self.checklist_path)
        runner = PipelineRunner(self._open_pair, self.root, decrypt_workers=decrypt_workers)
        try:
            runner.run(self.files, writer)
        except BaseException:
            writer.discard()
            raise
        writer.commit()
        return writer.count

    def _open_pair(self, pair: FilePair) -> Optional[str]:
        """
        Decrypt a pair into its working copy and hide the ciphertext.

        An existing working copy is kept as is. Its edits are not yet in the
        ciphertext, so the fingerprint of the decrypted ciphertext is returned
        for the checklist instead of the working copy's own.
        """
        state = pair.state
        decrypted = False
        baseline = None
        if state in (OPEN, EXPOSED):
            console.warning(f"Keeping existing working copy {pair.plaintext_path}")
            baseline = self._ciphertext_fingerprint(pair)
        else:
            console.info(f"Decrypting {pair.current_path}")
            try:
                self.cipher.decrypt(pair.current_path, pair.plaintext_path, self.recipient)
            except JournalError:
                # drop whatever partial output the cipher left behind
                pair.remove_plaintext()
                raise
            decrypted = True

        with self._opened_lock:
            self._opened.append((pair, decrypted, pair.visible))
        pair.leave_footprint()
        return baseline

    def _ciphertext_fingerprint(self, pair: FilePair) -> str:
        try:
            fd, name = tempfile.mkstemp(
                prefix=HIDDEN_MARKER + pair.plaintext_path.name + ".",
                suffix=".tmp",
                dir=pair.plaintext_path.parent,
            )
            os.close(fd)
        except OSError as e:
            raise JournalIOError("creating scratch file for", pair.plaintext_path, e) from e

        scratch = Path(name)
        try:
            self.cipher.decrypt(pair.current_path, scratch, self.recipient)
            return hash_file(scratch)
        finally:
            secure_delete(scratch)

    def _rollback(self) -> None:
        with self._opened_lock:
            opened = list(self._opened)
            self._opened = []

        for pair, decrypted, hid in reversed(opened):
            try:
                if decrypted:
                    pair.remove_plaintext()
                if hid:
                    pair.reset()
            except JournalError as e:
                console.warning(f"Could not roll back {pair.encrypted_path}: {e}")

    # -- lock -------------------------------------------------------------

    def load_checklist(self) -> Checklist:
        if not self.checklist_path.exists():
            raise MissingChecklistError(self.checklist_path)
        return Checklist.load(self.checklist_path, self.root)

    def lock(self) -> LockResult:
        """
        Re-encrypt the edited working copies and close every pair.

        Stops at the first encryption failure with .check and all working
        copies intact, so running lock again picks up where it stopped.
        """
        checklist = self.load_checklist()
        changed = set(checklist.diff())
        console.debug(f"{len(changed)} file(s) changed since unlock")

        result = LockResult()
        tracked = []
        for pair in self.files:
            rel = pair.relative_to(self.root)
            if rel not in checklist:
                if pair.has_plaintext:
                    console.warning(f"Skipping {pair.plaintext_path}: not recorded at unlock")
                    continue
                rel = None
            else:
                tracked.append(pair)

            if rel not in changed:
                if not pair.visible:
                    pair.reset()
                    result.revealed.append(pair)
                continue

            console.info(f"Encrypting {pair.plaintext_path}")
            self.cipher.encrypt(pair.plaintext_path, pair.encrypted_path, self.recipient)
            pair.remove_footprint()
            result.reencrypted.append(pair)

        for pair in tracked:
            pair.remove_plaintext()

        try:
            self.checklist_path.unlink()
        except OSError as e:
            raise JournalIOError("removing checklist", self.checklist_path, e) from e

        return result

    # -- status -----------------------------------------------------------

    def status(self) -> JournalStatus:
        """Report every pair's state and, while unlocked, whether its working copy was edited."""
        checklist = None
        changed = set()
        if self.checklist_path.exists():
            checklist = Checklist.load(self.checklist_path, self.root)
            changed = _changed_paths(checklist)

        status = JournalStatus(
            root=self.root,
            recipient=self.recipient,
            has_checklist=checklist is not None,
        )
        for pair in self.files:
            state = pair.state
            modified = None
            rel = pair.relative_to(self.root)
            if state == OPEN and checklist is not None and rel in checklist:
                modified = rel in changed
            status.pairs.append(PairStatus(pair=pair, state=state, modified=modified))
        return status


def _changed_paths(checklist: Checklist) -> Set[str]:
    """Like Checklist.diff, but counts vanished or unreadable files as changed."""
    changed = set()
    for path, fingerprint in checklist:
        try:
            if hash_file(checklist.root / path) != fingerprint:
                changed.add(path)
        except JournalIOError:
            changed.add(path)
    return changed
