"""
Allocation Locks

Per-allocatable mutexes held around check-and-commit sections.

Row locks (``select_for_update``) serialize writers across processes on
backends that support them; these in-process locks serialize request
threads of one worker on every backend, SQLite included.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class AllocationLockRegistry:
    """Hands out one ``RLock`` per ``(kind, id)`` pair."""

    def __init__(self):
        self._locks: Dict[Hashable, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, kind: str, identifier: Hashable) -> Iterator[None]:
        lock = self._lock_for((kind, identifier))
        with lock:
            yield


allocation_locks = AllocationLockRegistry()
