"""
Keyed Locks

Mutual exclusion scoped per key, used to make each room's
read-mutate-write-broadcast sequence atomic while unrelated rooms proceed.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable


class KeyedLock:
    """A lazily created re-entrant lock per key, dropped once nobody holds it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}
        self._holders: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._holders[key] = self._holders.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    del self._locks[key]

    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)
