"""In-process per-court mutexes."""

from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager


class CourtLocks:
    """
    One lock per court id.

    Serializes hold creation and transitions for a court within this
    process; select_for_update on the court row does the same across
    processes where the database supports it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)

    def _lock_for(self, court_id) -> threading.Lock:
        with self._guard:
            return self._locks[str(court_id)]

    @contextmanager
    def hold(self, court_id):
        lock = self._lock_for(court_id)
        with lock:
            yield


court_locks = CourtLocks()
