"""Per-key load serialisation."""

from __future__ import annotations

import threading
import time

import pytest
from filelock import FileLock

from LoadCached.locks import LoadLocks, Timeout, _hash_key


def test_same_key_is_serialised():
    locks = LoadLocks()
    events = []

    def worker(tag: str) -> None:
        with locks.hold(("http://example.org/a", None)):
            events.append(f"{tag}-start")
            time.sleep(0.05)
            events.append(f"{tag}-end")

    threads = [threading.Thread(target=worker, args=(tag,)) for tag in ("one", "two")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert events[0].endswith("start") and events[1].endswith("end")
    assert events[2].endswith("start") and events[3].endswith("end")


def test_different_keys_do_not_block():
    locks = LoadLocks()
    with locks.hold(("http://example.org/a", None)):
        acquired = threading.Event()

        def other() -> None:
            with locks.hold(("http://example.org/b", "http://example.org/g")):
                acquired.set()

        thread = threading.Thread(target=other)
        thread.start()
        assert acquired.wait(timeout=2.0)
        thread.join()


def test_file_lock_timeout(tmp_path):
    key = ("http://example.org/a", None)
    locks = LoadLocks(lock_dir=tmp_path, timeout=0.05)
    held = FileLock(str(tmp_path / f"load.{_hash_key(key)}.lock"))
    held.acquire()
    try:
        with pytest.raises(Timeout):
            with locks.hold(key):
                pass
    finally:
        held.release()

    with locks.hold(key):
        pass


def test_thread_lock_wait_is_bounded():
    key = ("http://example.org/a", "http://example.org/g")
    locks = LoadLocks(timeout=0.05)
    failures = []

    def contender() -> None:
        try:
            with locks.hold(key):
                pass
        except Timeout as exc:
            failures.append(exc)

    with locks.hold(key):
        thread = threading.Thread(target=contender)
        thread.start()
        thread.join(timeout=2.0)

    assert not thread.is_alive()
    assert len(failures) == 1
    with locks.hold(key):
        pass


def test_released_keys_are_forgotten():
    locks = LoadLocks()
    for index in range(5):
        with locks.hold((f"http://example.org/{index}", None)):
            assert len(locks._locks) == 1
    assert locks._locks == {}
