"""
locks.py
--------
Per-staff mutexes for check-then-write sequences.

The registry and the availability store read "rows that could conflict" and
then write. Two requests for the same staff member must not interleave
between those steps, otherwise both can pass the overlap check. StaffLocks
serializes them inside one process; callers also take a row lock on the Staff
record (select_for_update) so separate processes are serialized by the
database.

Locks are reentrant: a caller may hold a staff lock around its own
transaction and call into the registry, which takes the same lock again.
"""

import threading
from contextlib import contextmanager


class StaffLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def _lock_for(self, staff_id):
        with self._guard:
            lock = self._locks.get(staff_id)
            if lock is None:
                lock = self._locks[staff_id] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, *staff_ids):
        """
        Acquire the locks of every given staff id. Ids are locked in sorted
        order so two callers locking the same pair cannot deadlock.
        """
        ordered = sorted({int(s) for s in staff_ids if s is not None})
        acquired = []
        try:
            for staff_id in ordered:
                lock = self._lock_for(staff_id)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
