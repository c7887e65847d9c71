"""
Assignment Engine

Drives each job through pending -> accepted -> completed and keeps worker
availability, completion counters and earnings in step with it. The engine
holds no state of its own: every operation reads the ledger and registry from
the store, decides, and writes both back in one unit of work.

Critical sections: an operation holds the record locks of the job and worker
it touches, then runs check-and-write inside a single store session. If the
store reports that a collection moved underneath it (another process won a
race), the whole check-and-write is re-run on fresh data, so the loser sees
the ordinary precondition failure instead of a half-applied state.
"""
import logging

from wastetrack.models.job import ACCEPTED, PENDING
from wastetrack.models.severity import bonus_for
from wastetrack.models.worker import BUSY, FREE, BONUS, EarningRecord
from wastetrack.utils.helpers import utcnow
from .locks import KeyedLocks, LockTimeout, job_key, worker_key
from .store import StaleSnapshotError, StoreConflictError
from .timer import NullReleaseTimer, project, window_end

logger = logging.getLogger(__name__)


class AssignmentEngine:
    """
    Orchestrates accept/complete over an injected Job Ledger and Worker Registry

    Args:
        ledger (JobLedger): Job records
        registry (WorkerRegistry): Worker records, on the same store as ledger
        release_timer (ReleaseTimer): Arms deferred worker releases
        clock (callable): Returns the current aware UTC datetime
        locks (KeyedLocks): Per-record locks
        max_retries (int): Attempts per operation when the store reports a
            version conflict
    """

    def __init__(self, ledger, registry, release_timer=None, clock=utcnow, locks=None, max_retries=3):
        if ledger.store is not registry.store:
            raise ValueError('Ledger and registry must share one store')
        self.ledger = ledger
        self.registry = registry
        self.store = ledger.store
        self.release_timer = release_timer or NullReleaseTimer()
        self.clock = clock
        self.locks = locks or KeyedLocks()
        self.max_retries = max_retries

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def accept(self, job_id, worker_id):
        """
        Assign a pending job to a free worker and start its handling window

        Returns:
            bool: True on success; False if the job is missing or not
            pending, or the worker is missing or busy. Nothing changes on
            failure.
        """
        try:
            with self.locks.hold(job_key(job_id), worker_key(worker_id)):
                job = self._retrying(self._accept, job_id, worker_id)
                if job is not None:
                    self.release_timer.arm(job.id, worker_id, window_end(job), self.release_expired)
        except LockTimeout:
            logger.info('Accept of job %s by %s lost lock contention', job_id, worker_id)
            return False

        if job is None:
            return False

        logger.info(
            'Job %s accepted by %s, %d minute window', job.id, worker_id, job.timer_duration
        )
        return True

    def complete(self, job_id, worker_id):
        """
        Close a job held by worker_id and post the completion bonus

        Returns:
            bool: True on success; False if the job is missing, not held by
            this worker, or already completed. Nothing changes on failure.
        """
        try:
            with self.locks.hold(job_key(job_id), worker_key(worker_id)):
                job = self._retrying(self._complete, job_id, worker_id)
                if job is not None:
                    self.release_timer.disarm(job.id)
        except LockTimeout:
            logger.info('Complete of job %s by %s lost lock contention', job_id, worker_id)
            return False

        if job is None:
            return False

        logger.info('Job %s completed by %s, bonus %d posted', job.id, worker_id, bonus_for(job.severity))
        return True

    def release_expired(self, job_id, worker_id):
        """
        Free a worker whose handling window for job_id has run out

        This is the deferred action armed on accept. It only ever sets the
        worker free: the job stays accepted and no counter moves. It does
        nothing when the job was completed meanwhile, when the window has not
        run out yet, or when the worker is busy with another running job.

        Returns:
            bool: True if the worker was busy and has been released
        """
        try:
            with self.locks.hold(job_key(job_id), worker_key(worker_id)):
                released = self._retrying(self._release_expired, job_id, worker_id)
        except LockTimeout:
            logger.info('Release of %s for job %s skipped, records busy', worker_id, job_id)
            return False

        if released:
            logger.info('Handling window of job %s ran out, released %s', job_id, worker_id)
        return released

    def release_all_expired(self):
        """
        Sweep every accepted job and release assignees whose window ran out

        Catches releases lost to a restart, since deferred actions are not
        persisted.

        Returns:
            int: Number of workers released
        """
        now = self.clock()
        released = 0
        for job in self.ledger.list_by(status=ACCEPTED):
            timer = project(job, now)
            if timer is not None and timer.overtime and self.release_expired(job.id, job.assigned_to):
                released += 1
        if released:
            logger.info('Expiry sweep released %d worker(s)', released)
        return released

    # ------------------------------------------------------------------
    # Queries (never mutate anything)
    # ------------------------------------------------------------------

    def pending_in_zone(self, zone):
        return self.ledger.list_by(status=PENDING, zone=zone)

    def active_jobs_of(self, worker_id):
        return self.ledger.list_by(status=ACCEPTED, assignee=worker_id)

    def all_by_status(self, status):
        return self.ledger.list_by(status=status)

    def timer_for(self, job_id, now=None):
        """
        Timer projection for a job

        Returns:
            TimerProjection: or None when the job is unknown or not accepted
        """
        job = self.ledger.find(job_id)
        if job is None:
            return None
        return project(job, now or self.clock())

    # ------------------------------------------------------------------
    # Check-and-write bodies, each run inside one store session
    # ------------------------------------------------------------------

    def _accept(self, job_id, worker_id):
        now = self.clock()
        with self.store.session():
            job = self.ledger.find(job_id)
            if job is None:
                logger.info('Accept refused: job %s not found', job_id)
                return None
            if job.status != PENDING:
                logger.info('Accept refused: job %s is %s', job_id, job.status)
                return None

            worker = self.registry.find(worker_id)
            if worker is None:
                logger.info('Accept refused: worker %s not found', worker_id)
                return None
            if not worker.is_free:
                logger.info('Accept refused: worker %s is busy', worker_id)
                return None

            accepted = job.accepted_by(worker, now)
            self.ledger.replace(job_id, accepted)
            self.registry.set_availability(worker_id, BUSY)
        return accepted

    def _complete(self, job_id, worker_id):
        now = self.clock()
        with self.store.session():
            job = self.ledger.find(job_id)
            if job is None:
                logger.info('Complete refused: job %s not found', job_id)
                return None
            if job.assigned_to != worker_id:
                logger.info('Complete refused: job %s is not assigned to %s', job_id, worker_id)
                return None
            if job.status != ACCEPTED:
                logger.info('Complete refused: job %s is %s', job_id, job.status)
                return None
            if self.registry.find(worker_id) is None:
                logger.info('Complete refused: worker %s not found', worker_id)
                return None

            completed = job.completed(now)
            earning = EarningRecord(date=now, job_id=job_id, amount=bonus_for(job.severity), kind=BONUS)
            self.ledger.replace(job_id, completed)
            self.registry.record_completion(worker_id, earning)
            if not self._holds_running_job(worker_id, now, excluding=job_id):
                self.registry.set_availability(worker_id, FREE)
        return completed

    def _release_expired(self, job_id, worker_id):
        now = self.clock()
        with self.store.session():
            job = self.ledger.find(job_id)
            if job is None or job.status != ACCEPTED or job.assigned_to != worker_id:
                return False
            timer = project(job, now)
            if timer is None or not timer.overtime:
                return False
            if self._holds_running_job(worker_id, now, excluding=job_id):
                return False
            return self.registry.release(worker_id)

    def _holds_running_job(self, worker_id, now, excluding):
        """True if the worker holds another accepted job still inside its window"""
        for other in self.active_jobs_of(worker_id):
            if other.id == excluding:
                continue
            timer = project(other, now)
            if timer is not None and not timer.overtime:
                return True
        return False

    def _retrying(self, body, *args):
        for attempt in range(1, self.max_retries + 1):
            try:
                return body(*args)
            except StaleSnapshotError:
                logger.warning(
                    '%s hit a concurrent write (attempt %d/%d), retrying',
                    body.__name__.lstrip('_'), attempt, self.max_retries,
                )
        raise StoreConflictError(f'Gave up after {self.max_retries} conflicting writes')
