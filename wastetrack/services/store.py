"""
Persistent collection store

Jobs and workers are persisted as two whole-collection snapshots ("jobs" and
"workers"), each a mapping from record id to the full record. The only
operations are whole-collection read and whole-collection overwrite.

Writes go through a unit of work (``store.session()``): collections are read
once, mutated in memory and written back together when the outermost session
exits. Nothing is written if the body raises, so a job mutation and the
matching worker mutation either both land or neither does. Each collection
carries a version; a write based on an outdated version raises
``StaleSnapshotError`` and is not applied.
"""
import copy
import json
import logging
import threading
from contextlib import contextmanager

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from wastetrack import db
from wastetrack.models.snapshot import StoredCollection

logger = logging.getLogger(__name__)

JOBS = 'jobs'
WORKERS = 'workers'


class StoreError(Exception):
    """The store is unreachable or its contents are unusable"""


class StaleSnapshotError(StoreError):
    """A collection changed between the read and the write of a unit of work"""


class StoreConflictError(StoreError):
    """A unit of work kept losing version races and gave up"""


class StoreSession:
    """
    Unit of work over the store's collections

    Collections are loaded lazily on first access and cached with the version
    they were read at. ``records()`` hands out the cached mapping itself;
    callers mutate it and call ``mark_dirty()``.
    """

    def __init__(self, store):
        self._store = store
        self._loaded = {}
        self._dirty = set()

    def records(self, name):
        if name not in self._loaded:
            self._loaded[name] = self._store._load(name)
        return self._loaded[name][0]

    def mark_dirty(self, name):
        if name not in self._loaded:
            raise StoreError(f'Collection {name!r} was not read in this session')
        self._dirty.add(name)

    def commit(self):
        if not self._dirty:
            return
        changes = {name: self._loaded[name] for name in self._dirty}
        self._store._save(changes)
        self._dirty.clear()


class CollectionStore:
    """
    Base class for collection stores

    Subclasses implement ``_load(name) -> (records, version)`` and
    ``_save({name: (records, expected_version)})``. ``_save`` must apply all
    collections or none.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._local = threading.local()

    @contextmanager
    def session(self):
        """
        Open a unit of work, or join the one already open on this thread

        Only the outermost session commits. The store lock is held for the
        whole unit so read-modify-write cycles within one process never
        interleave.
        """
        current = getattr(self._local, 'session', None)
        if current is not None:
            yield current
            return

        with self._lock:
            session = StoreSession(self)
            self._local.session = session
            try:
                yield session
                session.commit()
            finally:
                self._local.session = None

    def read_all(self, name):
        """Return a detached copy of every record in a collection"""
        records, _ = self._load(name)
        return records

    def write_all(self, name, records):
        """Overwrite a whole collection"""
        with self.session() as session:
            current = session.records(name)
            current.clear()
            current.update(copy.deepcopy(records))
            session.mark_dirty(name)

    def _load(self, name):
        raise NotImplementedError

    def _save(self, changes):
        raise NotImplementedError


class InMemoryStore(CollectionStore):
    """
    Store keeping snapshots in process memory

    Records are copied through JSON on the way in and out so nothing held by
    a caller aliases the stored state.
    """

    def __init__(self):
        super().__init__()
        self._collections = {}
        self._data_lock = threading.Lock()

    def _load(self, name):
        with self._data_lock:
            payload, version = self._collections.get(name, ('{}', 0))
        return json.loads(payload), version

    def _save(self, changes):
        with self._data_lock:
            for name, (_, expected) in changes.items():
                _, version = self._collections.get(name, ('{}', 0))
                if version != expected:
                    raise StaleSnapshotError(
                        f'{name} is at version {version}, expected {expected}'
                    )
            for name, (records, expected) in changes.items():
                self._collections[name] = (json.dumps(records), expected + 1)


class SqlAlchemyStore(CollectionStore):
    """
    Store keeping snapshots in the ``stored_collections`` table

    Must be used inside a Flask application context. All collections touched
    by a unit of work are written in one database transaction, each guarded by
    ``UPDATE ... WHERE version = :expected``.
    """

    def _load(self, name):
        try:
            row = db.session.execute(
                select(StoredCollection.payload, StoredCollection.version)
                .where(StoredCollection.name == name)
            ).one_or_none()
            # End the read transaction so the next read sees fresh data
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception('Failed to read collection %s', name)
            raise StoreError(f'Failed to read collection {name}') from e

        if row is None:
            return {}, 0
        return copy.deepcopy(row.payload or {}), row.version

    def _save(self, changes):
        try:
            for name, (records, expected) in changes.items():
                if expected == 0:
                    db.session.add(StoredCollection(name=name, payload=records, version=1))
                    try:
                        db.session.flush()
                    except IntegrityError:
                        # Another writer created the collection first
                        db.session.rollback()
                        raise StaleSnapshotError(f'{name} was created concurrently')
                    continue

                result = db.session.execute(
                    update(StoredCollection)
                    .where(StoredCollection.name == name, StoredCollection.version == expected)
                    .values(payload=records, version=expected + 1)
                )
                if result.rowcount != 1:
                    db.session.rollback()
                    raise StaleSnapshotError(f'{name} changed since version {expected}')

            db.session.commit()
        except StaleSnapshotError:
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception('Failed to write collections %s', ', '.join(changes))
            raise StoreError('Failed to write collections') from e
