"""
Collection store tests for WasteTrack
Tests unit-of-work commits, rollback on failure and version conflicts
"""
import pytest
from sqlalchemy import update

from wastetrack import db
from wastetrack.models import StoredCollection
from wastetrack.models.job import PENDING
from wastetrack.models.worker import FREE
from wastetrack.services import Services, InMemoryStore, SqlAlchemyStore, StoreConflictError
from wastetrack.services.store import JOBS, WORKERS, StaleSnapshotError


class FlakyStore(InMemoryStore):
    """In-memory store whose first N writes lose a version race"""

    def __init__(self, conflicts):
        super().__init__()
        self.conflicts = conflicts
        self.saves = 0

    def _save(self, changes):
        self.saves += 1
        if self.conflicts:
            self.conflicts -= 1
            raise StaleSnapshotError('simulated concurrent write')
        super()._save(changes)


class TestInMemoryStore:
    """Test the in-process store"""

    def test_write_and_read(self):
        store = InMemoryStore()
        store.write_all(JOBS, {'a': {'id': 'a'}})

        assert store.read_all(JOBS) == {'a': {'id': 'a'}}
        assert store.read_all(WORKERS) == {}

    def test_reads_are_detached(self):
        store = InMemoryStore()
        store.write_all(JOBS, {'a': {'id': 'a'}})

        store.read_all(JOBS)['a']['id'] = 'changed'

        assert store.read_all(JOBS) == {'a': {'id': 'a'}}

    def test_failed_unit_writes_nothing(self):
        """Test a raising session leaves both collections untouched"""
        store = InMemoryStore()

        with pytest.raises(RuntimeError):
            with store.session() as session:
                session.records(JOBS)['a'] = {'id': 'a'}
                session.mark_dirty(JOBS)
                session.records(WORKERS)['w'] = {'id': 'w'}
                session.mark_dirty(WORKERS)
                raise RuntimeError('boom')

        assert store.read_all(JOBS) == {}
        assert store.read_all(WORKERS) == {}

    def test_nested_sessions_commit_once(self):
        store = InMemoryStore()

        with store.session() as outer:
            with store.session() as inner:
                assert inner is outer
                inner.records(JOBS)['a'] = {'id': 'a'}
                inner.mark_dirty(JOBS)
            assert store.read_all(JOBS) == {}

        assert store.read_all(JOBS) == {'a': {'id': 'a'}}

    def test_stale_write_is_rejected(self):
        store = InMemoryStore()

        with pytest.raises(StaleSnapshotError):
            with store.session() as session:
                session.records(JOBS)['a'] = {'id': 'a'}
                session.mark_dirty(JOBS)
                # Another writer lands first
                store._save({JOBS: ({'b': {'id': 'b'}}, 0)})

        assert store.read_all(JOBS) == {'b': {'id': 'b'}}


class TestConflictRetry:
    """Test the engine re-running a unit of work after a version conflict"""

    def test_accept_retries_after_conflict(self, clock):
        services = Services(FlakyStore(conflicts=0), clock=clock)
        job = _seed(services)
        services.store.conflicts = 1

        assert services.engine.accept(job.id, 'worker-1') is True
        assert services.ledger.find(job.id).assigned_to == 'worker-1'

    def test_accept_gives_up_after_max_retries(self, clock):
        services = Services(FlakyStore(conflicts=0), clock=clock, max_retries=3)
        job = _seed(services)
        services.store.conflicts = 10

        with pytest.raises(StoreConflictError):
            services.engine.accept(job.id, 'worker-1')

        services.store.conflicts = 0
        assert services.ledger.find(job.id).status == PENDING
        assert services.registry.find('worker-1').availability == FREE


class TestSqlAlchemyStore:
    """Test the database-backed store"""

    def test_write_and_read(self, app):
        store = SqlAlchemyStore()
        store.write_all(JOBS, {'a': {'id': 'a'}})
        store.write_all(JOBS, {'a': {'id': 'a'}, 'b': {'id': 'b'}})

        assert store.read_all(JOBS) == {'a': {'id': 'a'}, 'b': {'id': 'b'}}
        assert db.session.get(StoredCollection, JOBS).version == 2

    def test_stale_write_is_rejected(self, app):
        store = SqlAlchemyStore()
        store.write_all(JOBS, {'a': {'id': 'a'}})

        with pytest.raises(StaleSnapshotError):
            with store.session() as session:
                session.records(JOBS)['b'] = {'id': 'b'}
                session.mark_dirty(JOBS)
                # Another process bumps the version
                db.session.execute(
                    update(StoredCollection)
                    .where(StoredCollection.name == JOBS)
                    .values(version=StoredCollection.version + 1)
                )
                db.session.commit()

        assert store.read_all(JOBS) == {'a': {'id': 'a'}}

    def test_engine_over_database(self, app, clock):
        services = Services(SqlAlchemyStore(), clock=clock)
        job = _seed(services)

        assert services.engine.accept(job.id, 'worker-1') is True
        assert services.engine.complete(job.id, 'worker-1') is True
        assert services.registry.find('worker-1').lifetime_completed == 1


def _seed(services):
    from wastetrack.models.job import Location

    services.registry.provision('Worker 1', 'North', worker_id='worker-1')
    return services.ledger.create({
        'reporter_name': 'Anita',
        'location': Location(lat=13.08, lng=80.27, address='12 Marina Rd'),
        'description': 'Garden waste',
        'image_url': '',
        'zone': 'North',
        'severity': 'low',
        'vehicle': 'small',
    })
