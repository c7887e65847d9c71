"""
Per-record locks

Every mutating operation holds the locks of the job and worker ids it
touches for the whole check-then-write sequence. Keys are acquired in sorted
order so two operations touching the same pair of records cannot deadlock.
"""
import logging
import threading
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class LockTimeout(Exception):
    """A record lock could not be acquired within the configured timeout"""


class KeyedLocks:
    """
    Lazily created lock per key, e.g. ('job', '<id>') or ('worker', '<id>')

    A lock lives only while some caller holds or waits for it, so the map
    never outgrows the number of operations in flight.
    """

    def __init__(self, timeout=5.0):
        self.timeout = timeout
        self._locks = {}  # key -> [lock, users]
        self._guard = threading.Lock()

    def __len__(self):
        with self._guard:
            return len(self._locks)

    def _checkout(self, key):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key):
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if not entry[1]:
                del self._locks[key]

    def is_held(self, key):
        with self._guard:
            entry = self._locks.get(key)
            return entry is not None and entry[0].locked()

    @contextmanager
    def hold(self, *keys):
        """
        Hold the locks for all keys

        Raises:
            LockTimeout: if any lock is still held elsewhere after the timeout
        """
        checked_out = []
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                checked_out.append(key)
                if not lock.acquire(timeout=self.timeout):
                    logger.warning('Timed out waiting for lock %s:%s', *key)
                    raise LockTimeout(f'Lock {key[0]}:{key[1]} is busy')
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._checkin(key)


def job_key(job_id):
    return ('job', job_id)


def worker_key(worker_id):
    return ('worker', worker_id)
