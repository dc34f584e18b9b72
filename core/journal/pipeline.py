"""
Pipeline Runner - Concurrent unlock: decrypt -> fingerprint -> persist.

Each stage is its own thread and stages talk through bounded queues, so a
producer blocks when the next stage falls behind. A file is never
fingerprinted before it is decrypted, nor recorded before it is fingerprinted;
across files there is no ordering.

Workers never terminate the process. The first exception is handed to the
supervisor (PipelineRunner.run), which stops every stage and re-raises it.
"""

import queue
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from core.config import Config
from core.indexing.checklist import ChecklistWriter, hash_file
from core.journal.pair import FilePair
from core.utils import console

POLL_INTERVAL = 0.05

_STOP = object()


class PipelineAborted(Exception):
    """Raised inside a stage when another stage already failed."""


class CompletionCounter:
    """
    Counts down one persisted record per input pair.

    wait() returns once every record arrived or the run was aborted.
    """

    def __init__(self, expected: int):
        self._remaining = expected
        self._aborted = False
        self._cond = threading.Condition()

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._remaining

    @property
    def aborted(self) -> bool:
        with self._cond:
            return self._aborted

    def done(self) -> None:
        with self._cond:
            if self._remaining <= 0:
                raise RuntimeError("More records persisted than pairs submitted")
            self._remaining -= 1
            if self._remaining == 0:
                self._cond.notify_all()

    def abort(self) -> None:
        with self._cond:
            self._aborted = True
            self._cond.notify_all()

    def wait(self) -> bool:
        """Block until completion or abort; True only on full completion."""
        with self._cond:
            while self._remaining > 0 and not self._aborted:
                self._cond.wait()
            return self._remaining == 0 and not self._aborted


class PipelineRunner:
    """
    Runs the unlock pipeline over a list of pairs.

    Args:
        open_pair: Decrypts a pair and hides its ciphertext (stage A work). It may
            return the fingerprint to record, otherwise the working copy is hashed
        root: Journal root; checklist paths are recorded relative to it
        queue_size: Capacity of each inter-stage queue
        decrypt_workers: Number of concurrent stage A threads
    """

    def __init__(
        self,
        open_pair: Callable[[FilePair], Optional[str]],
        root: Path,
        queue_size: Optional[int] = None,
        decrypt_workers: Optional[int] = None,
    ):
        self.open_pair = open_pair
        self.root = Path(root)
        self.queue_size = max(1, queue_size or Config.QUEUE_SIZE)
        self.decrypt_workers = max(1, decrypt_workers or Config.DECRYPT_WORKERS)

        self._abort = threading.Event()
        self._error_lock = threading.Lock()
        self._error: Optional[BaseException] = None

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def run(self, pairs: Sequence[FilePair], writer: ChecklistWriter) -> None:
        """
        Push every pair through the pipeline, appending one record each to writer.

        The writer is neither committed nor discarded here; that decision
        belongs to the caller once run() returns or raises.
        """
        counter = CompletionCounter(len(pairs))
        if not pairs:
            return

        inbox: queue.Queue = queue.Queue()
        for pair in pairs:
            inbox.put(pair)
        for _ in range(self.decrypt_workers):
            inbox.put(_STOP)

        decrypted: queue.Queue = queue.Queue(maxsize=self.queue_size)
        fingerprinted: queue.Queue = queue.Queue(maxsize=self.queue_size)

        live_decrypters = [self.decrypt_workers]
        live_lock = threading.Lock()

        def decrypt_stage():
            while True:
                pair = inbox.get()
                if pair is _STOP or self._abort.is_set():
                    break
                console.debug(f"Decrypting {pair.encrypted_path}")
                baseline = self.open_pair(pair)
                self._put(decrypted, (pair, baseline))
            with live_lock:
                live_decrypters[0] -= 1
                last = live_decrypters[0] == 0
            if last:
                self._put(decrypted, _STOP)

        def fingerprint_stage():
            while True:
                item = self._get(decrypted)
                if item is _STOP:
                    break
                pair, baseline = item
                fingerprint = baseline or hash_file(pair.plaintext_path)
                self._put(fingerprinted, (pair, fingerprint))
            self._put(fingerprinted, _STOP)

        def persist_stage():
            while True:
                item = self._get(fingerprinted)
                if item is _STOP:
                    break
                pair, fingerprint = item
                writer.append(pair.relative_to(self.root), fingerprint)
                counter.done()

        threads: List[threading.Thread] = [
            threading.Thread(
                target=self._guard(decrypt_stage, counter),
                name=f"journal-decrypt-{i}",
                daemon=True,
            )
            for i in range(self.decrypt_workers)
        ]
        threads.append(
            threading.Thread(target=self._guard(fingerprint_stage, counter), name="journal-fingerprint", daemon=True)
        )
        threads.append(
            threading.Thread(target=self._guard(persist_stage, counter), name="journal-persist", daemon=True)
        )

        for thread in threads:
            thread.start()

        completed = counter.wait()
        if not completed:
            self._abort.set()
        for thread in threads:
            thread.join()

        if self._error is not None:
            raise self._error
        if not completed or counter.remaining:
            raise RuntimeError(
                f"Unlock pipeline stopped with {counter.remaining} of {len(pairs)} records missing"
            )

    def _guard(self, stage: Callable[[], None], counter: CompletionCounter) -> Callable[[], None]:
        def wrapper():
            try:
                stage()
            except PipelineAborted:
                pass
            except BaseException as e:
                self._fail(e, counter)

        return wrapper

    def _fail(self, exc: BaseException, counter: CompletionCounter) -> None:
        with self._error_lock:
            if self._error is None:
                self._error = exc
        self._abort.set()
        counter.abort()

    def _put(self, q: queue.Queue, item) -> None:
        while True:
            if self._abort.is_set():
                raise PipelineAborted()
            try:
                q.put(item, timeout=POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def _get(self, q: queue.Queue):
        while True:
            if self._abort.is_set():
                raise PipelineAborted()
            try:
                return q.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
