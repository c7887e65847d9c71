"""
Read-only summaries for worker and zone dashboards
"""
from wastetrack.models.job import ACCEPTED, COMPLETED, PENDING
from wastetrack.models.worker import WORKER, SENIOR_WORKER, BONUS
from wastetrack.utils.helpers import format_currency


def earnings_summary(worker, today):
    """
    Salary, bonuses and quota progress of one worker

    Args:
        worker (Worker): The worker
        today (date): Current UTC day; a counter left over from an earlier
            day reads as zero

    Returns:
        dict: Summary suitable for JSON
    """
    profile = worker.profile
    bonus_total = worker.bonus_total
    completed_today = worker.completed_on(today)
    quota_progress = completed_today / profile.daily_quota if profile.daily_quota else 0.0

    return {
        'worker_id': worker.id,
        'salary': profile.salary,
        'bonus_total': bonus_total,
        'total_compensation': profile.salary + bonus_total,
        'total_compensation_display': format_currency(profile.salary + bonus_total),
        'daily_quota': profile.daily_quota,
        'completed_today': completed_today,
        'quota_progress': round(quota_progress, 2),
        'lifetime_completed': worker.lifetime_completed,
        'earnings': [e.to_dict() for e in worker.earnings],
    }


def zone_stats(zone, jobs, workers):
    """
    Job and staffing figures for a zone

    Args:
        zone (str): Zone label
        jobs: iterable of Job in any zone
        workers: iterable of Worker in any zone

    Returns:
        dict: Summary suitable for JSON
    """
    zone_jobs = [j for j in jobs if j.zone == zone]
    zone_workers = [w for w in workers if w.zone == zone]
    completed_ids = {j.id for j in zone_jobs if j.status == COMPLETED}

    bonuses_paid = sum(
        e.amount
        for w in workers
        for e in w.earnings
        if e.kind == BONUS and e.job_id in completed_ids
    )

    return {
        'zone': zone,
        'jobs_completed': len(completed_ids),
        'jobs_pending': sum(1 for j in zone_jobs if j.status == PENDING),
        'jobs_active': sum(1 for j in zone_jobs if j.status == ACCEPTED),
        'bonuses_paid': bonuses_paid,
        'workers_count': sum(1 for w in zone_workers if w.role == WORKER),
        'senior_workers_count': sum(1 for w in zone_workers if w.role == SENIOR_WORKER),
        'workers_busy': sum(1 for w in zone_workers if not w.is_free),
    }
