"""Per-key mutual exclusion for ledger writers."""

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


class LockTimeoutError(TimeoutError):
    """Raised when a keyed lock cannot be acquired before the deadline."""


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLocks:
    """Registry of locks created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _LockEntry] = {}

    @contextmanager
    def acquire(self, key: Hashable, timeout: float | None = None) -> Iterator[None]:
        """Hold the lock for ``key``; waits at most ``timeout`` seconds."""
        with self._guard:
            entry = self._entries.setdefault(key, _LockEntry())
            entry.holders += 1
        acquired = False
        try:
            acquired = entry.lock.acquire(timeout=-1 if timeout is None else timeout)
            if not acquired:
                raise LockTimeoutError(f"Timed out waiting for lock {key!r}")
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
