"""
In-process mutual exclusion keyed by an arbitrary string.

The stock ledger holds ``product_locks.hold(product_id)`` around every
read-validate-write sequence. On PostgreSQL/MySQL the ``SELECT ... FOR UPDATE``
row lock already serializes writers across processes; SQLite ignores
``FOR UPDATE``, so within one process this lock is what keeps two requests
from reading the same balance. Keys that nobody holds or waits on are dropped,
so the registry only ever contains products with in-flight mutations.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class _Entry:
    lock: Lock = field(default_factory=Lock)
    holders: int = 0


class KeyedLock:
    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._guard = Lock()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, _Entry())
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def active_keys(self) -> set[str]:
        with self._guard:
            return set(self._entries)


product_locks = KeyedLock()
