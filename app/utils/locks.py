"""
In-process mutual exclusion keyed by an arbitrary hashable (e.g. (user_id, work_date)).

The database unique constraint on attendance_records is the cross-process guard;
these locks serialize requests handled by the same worker so the second of two
racing check-ins sees the first one's row instead of hitting the constraint.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class KeyedLock:
    """A lock per key; entries are dropped once no thread holds or waits on them."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Serializes state transitions of one user's day
day_locks = KeyedLock()

# Single writer for policy version swaps
policy_write_lock = threading.Lock()
