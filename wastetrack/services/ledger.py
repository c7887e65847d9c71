"""
Job Ledger - sole owner of job records
"""
import logging

from wastetrack.models.job import Job, PENDING
from wastetrack.utils.helpers import generate_unique_id, utcnow
from .store import JOBS

logger = logging.getLogger(__name__)

# Set by the engine only, never by whoever creates the job
_LIFECYCLE_FIELDS = (
    'status',
    'assigned_to',
    'assigned_worker_name',
    'accepted_at',
    'completed_at',
    'timer_duration',
    'timer_started_at',
    'bonus_paid',
)


class JobView:
    """
    Lazy, restartable sequence of jobs matching a predicate

    Each iteration reads the current snapshot, so iterating twice reflects any
    writes made in between.
    """

    def __init__(self, ledger, predicate):
        self._ledger = ledger
        self._predicate = predicate

    def __iter__(self):
        for job in self._ledger.all():
            if self._predicate(job):
                yield job

    def count(self):
        return sum(1 for _ in self)


class JobLedger:
    """Job records persisted in the "jobs" collection"""

    def __init__(self, store):
        self.store = store

    def create(self, fields):
        """
        Create a new pending job

        Args:
            fields (dict): Reporter facts and the resolved classification
                (severity, vehicle, confidence). Lifecycle fields are ignored.

        Returns:
            Job: The stored job
        """
        fields = {k: v for k, v in fields.items() if k not in _LIFECYCLE_FIELDS}
        fields.setdefault('id', generate_unique_id())
        fields.setdefault('reported_at', utcnow())
        job = Job(status=PENDING, **fields)

        with self.store.session() as session:
            records = session.records(JOBS)
            if job.id in records:
                raise ValueError(f'Job {job.id} already exists')
            records[job.id] = job.to_dict()
            session.mark_dirty(JOBS)

        logger.info('Job %s created in zone %s (%s)', job.id, job.zone, job.severity)
        return job

    def find(self, job_id):
        with self.store.session() as session:
            data = session.records(JOBS).get(job_id)
        return Job.from_dict(data) if data else None

    def replace(self, job_id, job):
        """Overwrite a job wholesale; the caller passes a fully valid record"""
        with self.store.session() as session:
            records = session.records(JOBS)
            records[job_id] = job.to_dict()
            session.mark_dirty(JOBS)

    def all(self):
        with self.store.session() as session:
            records = list(session.records(JOBS).values())
        return [Job.from_dict(data) for data in records]

    def list_by(self, predicate=None, status=None, zone=None, assignee=None):
        """
        Jobs matching every given filter

        Returns:
            JobView: lazy sequence, restartable by iterating again
        """
        def matches(job):
            if status is not None and job.status != status:
                return False
            if zone is not None and job.zone != zone:
                return False
            if assignee is not None and job.assigned_to != assignee:
                return False
            return predicate is None or predicate(job)

        return JobView(self, matches)
