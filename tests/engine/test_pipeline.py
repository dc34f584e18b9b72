import hashlib
import threading
import time

import pytest

from core.indexing.checklist import Checklist, ChecklistWriter
from core.journal.errors import ExternalToolError, JournalIOError
from core.journal.pair import FilePair
from core.journal.pipeline import CompletionCounter, PipelineRunner


def make_pairs(root, count):
    return [FilePair.from_artifact(root / f"entry{i:03d}.gpg", ".gpg") for i in range(count)]


def writing_opener(events=None, lock=None):
    def open_pair(pair):
        pair.plaintext_path.write_text(f"content of {pair.plaintext_path.name}")
        if events is not None:
            with lock:
                events.append(pair.plaintext_path.name)

    return open_pair


def test_counter_completes_after_expected_records():
    counter = CompletionCounter(2)
    counter.done()
    assert counter.remaining == 1

    counter.done()
    assert counter.wait() is True


def test_counter_abort_wakes_waiter():
    counter = CompletionCounter(3)
    threading.Timer(0.05, counter.abort).start()

    assert counter.wait() is False
    assert counter.aborted


def test_counter_rejects_extra_records():
    counter = CompletionCounter(1)
    counter.done()

    with pytest.raises(RuntimeError):
        counter.done()


def test_pipeline_records_one_entry_per_pair(tmp_path):
    pairs = make_pairs(tmp_path, 25)
    writer = ChecklistWriter(tmp_path / ".check")

    PipelineRunner(writing_opener(), tmp_path, queue_size=2).run(pairs, writer)
    writer.commit()

    checklist = Checklist.load(tmp_path / ".check", tmp_path)
    assert writer.count == 25
    assert sorted(path for path, _ in checklist) == [p.plaintext_path.name for p in pairs]
    for path, fingerprint in checklist:
        assert fingerprint == hashlib.md5(f"content of {path}".encode()).hexdigest()
    assert checklist.diff() == []


def test_pipeline_with_several_decrypt_workers(tmp_path):
    pairs = make_pairs(tmp_path, 40)
    events, lock = [], threading.Lock()
    writer = ChecklistWriter(tmp_path / ".check")

    PipelineRunner(writing_opener(events, lock), tmp_path, queue_size=1, decrypt_workers=4).run(pairs, writer)
    writer.commit()

    assert sorted(events) == [p.plaintext_path.name for p in pairs]
    assert len(Checklist.load(tmp_path / ".check", tmp_path)) == 40


def test_pipeline_with_no_pairs(tmp_path):
    writer = ChecklistWriter(tmp_path / ".check")

    PipelineRunner(writing_opener(), tmp_path).run([], writer)
    writer.commit()

    assert (tmp_path / ".check").read_text() == ""


def test_decrypt_failure_aborts_without_hanging(tmp_path):
    pairs = make_pairs(tmp_path, 50)
    failing = pairs[10]
    opener = writing_opener()

    def open_pair(pair):
        if pair == failing:
            raise ExternalToolError("decrypting", pair.encrypted_path, "gpg: decryption failed")
        opener(pair)

    writer = ChecklistWriter(tmp_path / ".check")
    runner = PipelineRunner(open_pair, tmp_path, queue_size=1)

    started = time.monotonic()
    with pytest.raises(ExternalToolError) as exc:
        runner.run(pairs, writer)
    writer.discard()

    assert time.monotonic() - started < 10
    assert exc.value.path == failing.encrypted_path
    assert runner.error is exc.value
    assert writer.count < 50
    assert not (tmp_path / ".check").exists()


def test_fingerprint_failure_aborts(tmp_path):
    pairs = make_pairs(tmp_path, 5)

    def open_pair(pair):
        # no working copy is written, so fingerprinting fails
        pass

    writer = ChecklistWriter(tmp_path / ".check")
    with pytest.raises(JournalIOError) as exc:
        PipelineRunner(open_pair, tmp_path).run(pairs, writer)
    writer.discard()

    assert exc.value.path == pairs[0].plaintext_path
    assert writer.count == 0


class SlowWriter(ChecklistWriter):
    """Persists slowly so the upstream stages fill their queues."""

    def __init__(self, target, on_append):
        super().__init__(target)
        self.on_append = on_append

    def append(self, path, fingerprint):
        time.sleep(0.01)
        self.on_append()
        super().append(path, fingerprint)


@pytest.mark.parametrize("queue_size, workers", [(1, 1), (2, 3)])
def test_slow_persist_blocks_decryption(tmp_path, queue_size, workers):
    pairs = make_pairs(tmp_path, 30)
    lock = threading.Lock()
    counts = {"opened": 0, "persisted": 0, "peak": 0}
    opener = writing_opener()

    def open_pair(pair):
        opener(pair)
        with lock:
            counts["opened"] += 1
            counts["peak"] = max(counts["peak"], counts["opened"] - counts["persisted"])

    def on_append():
        with lock:
            counts["persisted"] += 1

    writer = SlowWriter(tmp_path / ".check", on_append)
    PipelineRunner(open_pair, tmp_path, queue_size=queue_size, decrypt_workers=workers).run(pairs, writer)
    writer.commit()

    # each decrypter, the fingerprinter and the persister hold one pair, plus both queues
    assert counts["peak"] <= 2 * queue_size + workers + 2
    assert counts["opened"] == counts["persisted"] == 30


def test_open_pair_fingerprint_is_recorded_as_is(tmp_path):
    pairs = make_pairs(tmp_path, 3)
    opener = writing_opener()
    baseline = "0" * 32

    def open_pair(pair):
        opener(pair)
        return baseline if pair == pairs[1] else None

    writer = ChecklistWriter(tmp_path / ".check")
    PipelineRunner(open_pair, tmp_path).run(pairs, writer)
    writer.commit()

    checklist = Checklist.load(tmp_path / ".check", tmp_path)
    assert dict(checklist.entries)[pairs[1].plaintext_path.name] == baseline
    assert checklist.diff() == [pairs[1].plaintext_path.name]
