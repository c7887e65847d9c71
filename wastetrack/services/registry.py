"""
Worker Registry - sole owner of worker records

Every mutation reads and writes back the whole "workers" collection inside a
store session, never a lone record, so concurrent counter updates cannot be
lost.
"""
import logging

from wastetrack.models.worker import Worker, FREE, BUSY, WORKER, WORKER_ROLES
from wastetrack.utils.helpers import generate_unique_id
from .store import WORKERS

logger = logging.getLogger(__name__)


class UnknownWorkerError(LookupError):
    """No worker with the given id is registered"""


class WorkerRegistry:
    """Worker records persisted in the "workers" collection"""

    def __init__(self, store):
        self.store = store

    def provision(self, name, zone, role=WORKER, worker_id=None):
        """
        Register a new worker, free and with zeroed counters

        Returns:
            Worker: The stored worker
        """
        if role not in WORKER_ROLES:
            raise ValueError(f'Invalid role: {role!r}')
        worker = Worker(id=worker_id or generate_unique_id(), name=name, zone=zone, role=role)

        with self.store.session() as session:
            records = session.records(WORKERS)
            if worker.id in records:
                raise ValueError(f'Worker {worker.id} already exists')
            records[worker.id] = worker.to_dict()
            session.mark_dirty(WORKERS)

        logger.info('Provisioned %s %s in zone %s', role, worker.id, zone)
        return worker

    def find(self, worker_id):
        with self.store.session() as session:
            data = session.records(WORKERS).get(worker_id)
        return Worker.from_dict(data) if data else None

    def all(self):
        with self.store.session() as session:
            records = list(session.records(WORKERS).values())
        return [Worker.from_dict(data) for data in records]

    def list_by_zone_and_role(self, zone, roles=WORKER_ROLES):
        """Lazily yield the workers of a zone holding one of the given roles"""
        for worker in self.all():
            if worker.zone == zone and worker.role in roles:
                yield worker

    def set_availability(self, worker_id, state):
        """
        Set a worker free or busy

        Raises:
            UnknownWorkerError: if the worker does not exist
        """
        return self._update(worker_id, lambda w: w.with_availability(state))

    def release(self, worker_id):
        """
        Set a worker free

        Idempotent: releasing a free worker changes nothing and writes nothing.

        Returns:
            bool: True if the worker was busy and is now free
        """
        with self.store.session() as session:
            records = session.records(WORKERS)
            data = records.get(worker_id)
            if data is None or data.get('availability') != BUSY:
                return False
            records[worker_id] = Worker.from_dict(data).with_availability(FREE).to_dict()
            session.mark_dirty(WORKERS)
        return True

    def record_completion(self, worker_id, earning):
        """Bump both completion counters and append the earning, atomically"""
        return self._update(worker_id, lambda w: w.with_completion(earning))

    def reset_daily_counts(self, today):
        """
        Zero completed_today for workers whose counter refers to an earlier day

        Returns:
            int: Number of workers reset
        """
        reset = 0
        with self.store.session() as session:
            records = session.records(WORKERS)
            for worker_id, data in records.items():
                worker = Worker.from_dict(data)
                if worker.counters_date is None or worker.counters_date >= today:
                    continue
                records[worker_id] = Worker.from_dict(
                    dict(data, completed_today=0, counters_date=today.isoformat())
                ).to_dict()
                reset += 1
            if reset:
                session.mark_dirty(WORKERS)
        return reset

    def _update(self, worker_id, change):
        with self.store.session() as session:
            records = session.records(WORKERS)
            data = records.get(worker_id)
            if data is None:
                raise UnknownWorkerError(worker_id)
            worker = change(Worker.from_dict(data))
            records[worker_id] = worker.to_dict()
            session.mark_dirty(WORKERS)
        return worker
