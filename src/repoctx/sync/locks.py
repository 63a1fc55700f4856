"""Per-project mutual exclusion.

Two requests for the same project must never interleave (one deleting
the tree while the other clones or reads it). KeyedLock hands out one
reentrant lock per key and forgets keys nobody holds.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLock:
    """Reentrant locks keyed by string, reference-counted.

    Usage:
        locks = KeyedLock()
        with locks.hold("my_project"):
            ...
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str, timeout: float | None = None) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block.

        Args:
            key: Lock key (sanitized project name)
            timeout: Seconds to wait before giving up (None waits forever)

        Raises:
            TimeoutError: If the lock could not be acquired in time
        """
        lock = self._checkout(key)
        acquired = lock.acquire(timeout=-1 if timeout is None else max(timeout, 0.0))
        if not acquired:
            self._release(key)
            raise TimeoutError(f"Timed out waiting for lock on {key!r}")
        try:
            yield
        finally:
            lock.release()
            self._release(key)

    def active_keys(self) -> list[str]:
        """Keys currently held or waited on."""
        with self._guard:
            return sorted(self._locks)

    def _checkout(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._holders[key] = self._holders.get(key, 0) + 1
            return lock

    def _release(self, key: str) -> None:
        with self._guard:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]
