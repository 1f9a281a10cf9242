"""Serialise loads of the same (source, context) pair.

Every key gets an in-process ``threading.Lock``.  When a lock directory is
configured, a ``filelock`` lock file per key additionally serialises loaders
running in other processes against the same persistent store.  Both waits are
bounded by the same timeout and raise :class:`filelock.Timeout`.
"""

from __future__ import annotations

import contextlib
import hashlib
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from filelock import FileLock, Timeout

__all__ = ["Timeout", "LoadLocks"]

LOGGER = logging.getLogger(__name__)
logging.getLogger("filelock").setLevel(logging.INFO)

LockKey = Tuple[str, Optional[str]]


def _hash_key(key: LockKey) -> str:
    source, context = key
    digest = hashlib.sha256(f"{source}\x00{context or ''}".encode("utf-8")).hexdigest()
    return digest[:24]


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class LoadLocks:
    """Registry of per-key locks.

    Entries are dropped once no thread holds or waits for them.

    Args:
        lock_dir: Directory for cross-process lock files, or ``None``.
        timeout: Seconds to wait for each lock before raising :class:`Timeout`.
    """

    def __init__(self, lock_dir: Optional[Path] = None, timeout: float = 30.0) -> None:
        self.lock_dir = lock_dir
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[LockKey, _Entry] = {}

    def _checkout(self, key: LockKey) -> _Entry:
        with self._guard:
            entry = self._locks.setdefault(key, _Entry())
            entry.users += 1
            return entry

    def _checkin(self, key: LockKey, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    def _timed_out(self, key: LockKey, start: float, target: str) -> None:
        LOGGER.info(
            "lock-timeout",
            extra={
                "stage": "lock",
                "source": key[0],
                "context": key[1],
                "wait_ms": (time.monotonic() - start) * 1000.0,
                "lock_file": target,
            },
        )

    @contextlib.contextmanager
    def hold(self, key: LockKey) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block.

        Raises:
            Timeout: If the lock is not acquired within ``timeout`` seconds.
        """
        start = time.monotonic()
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=self.timeout):
                self._timed_out(key, start, "<thread>")
                raise Timeout(f"<thread lock {_hash_key(key)}>")
            try:
                if self.lock_dir is None:
                    yield None
                    return
                self.lock_dir.mkdir(parents=True, exist_ok=True)
                lock_file = self.lock_dir / f"load.{_hash_key(key)}.lock"
                lock = FileLock(str(lock_file), timeout=self.timeout)
                try:
                    lock.acquire()
                except Timeout:
                    self._timed_out(key, start, str(lock_file))
                    raise
                try:
                    yield None
                finally:
                    lock.release()
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)
