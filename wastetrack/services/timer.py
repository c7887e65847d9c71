"""
Timer Subsystem

Two separate concerns live here:

- ``project()``: the pure elapsed/remaining/overtime projection of an accepted
  job's handling window, computed from the two stored timer fields and a
  caller-supplied instant. Nothing derived is ever persisted.
- Release timers: one-shot deferred actions that free a worker once the
  window of the job they accepted has run out. Release is best effort; a lost
  action leaves the stored timestamps intact and the expiry sweep catches up.
"""
import logging
import math
from dataclasses import dataclass
from datetime import timedelta

from apscheduler.jobstores.base import JobLookupError

from wastetrack.models.job import ACCEPTED

logger = logging.getLogger(__name__)

# Below this many seconds left, a running timer is flagged as nearly due
WARNING_THRESHOLD_SECONDS = 600


@dataclass(frozen=True)
class TimerProjection:
    duration_minutes: int
    elapsed_seconds: int
    remaining_seconds: int
    overtime: bool

    @property
    def warning(self):
        return not self.overtime and self.remaining_seconds < WARNING_THRESHOLD_SECONDS

    @property
    def display(self):
        text = format_seconds(self.remaining_seconds)
        return f'+{text}' if self.overtime else text

    def to_dict(self):
        return {
            'duration_minutes': self.duration_minutes,
            'elapsed_seconds': self.elapsed_seconds,
            'remaining_seconds': self.remaining_seconds,
            'overtime': self.overtime,
            'warning': self.warning,
            'display': self.display,
        }


def project(job, now):
    """
    Project the handling window of an accepted job at instant now

    Returns:
        TimerProjection: or None when the job is not accepted or has no timer
    """
    if job.status != ACCEPTED or job.timer_started_at is None or not job.timer_duration:
        return None

    elapsed = math.floor((now - job.timer_started_at).total_seconds())
    remaining = job.timer_duration * 60 - elapsed
    overtime = remaining <= 0
    return TimerProjection(
        duration_minutes=job.timer_duration,
        elapsed_seconds=elapsed,
        remaining_seconds=abs(remaining),
        overtime=overtime,
    )


def window_end(job):
    """Instant at which an accepted job's handling window runs out"""
    return job.timer_started_at + timedelta(minutes=job.timer_duration)


def format_seconds(seconds):
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f'{hours}h {minutes}m {secs}s'
    return f'{minutes}m {secs}s'


class ReleaseTimer:
    """Interface for arming and disarming deferred worker releases"""

    def arm(self, job_id, worker_id, run_at, action):
        """Run action(job_id, worker_id) once at run_at"""
        raise NotImplementedError

    def disarm(self, job_id):
        raise NotImplementedError


class NullReleaseTimer(ReleaseTimer):
    """Used when the background scheduler is disabled; releases are dropped"""

    def arm(self, job_id, worker_id, run_at, action):
        logger.debug('Scheduler disabled, release of %s for job %s not armed', worker_id, job_id)

    def disarm(self, job_id):
        pass


class SchedulerReleaseTimer(ReleaseTimer):
    """
    Release timer backed by an APScheduler scheduler

    Each armed release is a one-shot ``date`` job with id ``release:<job_id>``.
    When an app is given, the action runs inside its application context.
    """

    def __init__(self, scheduler, app=None):
        self.scheduler = scheduler
        self.app = app

    @staticmethod
    def job_name(job_id):
        return f'release:{job_id}'

    def arm(self, job_id, worker_id, run_at, action):
        self.scheduler.add_job(
            self._run,
            'date',
            run_date=run_at,
            args=[action, job_id, worker_id],
            id=self.job_name(job_id),
            name=f'Release worker {worker_id} from job {job_id}',
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.info('Armed release of %s for job %s at %s', worker_id, job_id, run_at.isoformat())

    def disarm(self, job_id):
        try:
            self.scheduler.remove_job(self.job_name(job_id))
        except JobLookupError:
            # Already fired or never armed
            pass

    def _run(self, action, job_id, worker_id):
        try:
            if self.app is not None:
                with self.app.app_context():
                    action(job_id, worker_id)
            else:
                action(job_id, worker_id)
        except Exception:
            logger.exception('Deferred release for job %s failed', job_id)
