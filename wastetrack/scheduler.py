"""
WasteTrack Background Scheduler

Runs:
- One-shot releases of workers whose handling window ran out (armed on accept)
- Sweep of expired handling windows, catching releases lost to a restart
- Daily rollover of per-worker completion counters (midnight UTC)

Only starts when SCHEDULER_ENABLED is true to prevent running on multiple instances.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)


def _sweep_expired_windows(app):
    """Release workers still marked busy after their handling window ran out."""
    with app.app_context():
        from wastetrack.services import get_services

        released = get_services().engine.release_all_expired()
        if released:
            logger.info("Scheduler: released %d worker(s) with expired windows", released)


def _roll_daily_counters(app):
    """Zero completed_today for every worker at the start of a new day."""
    with app.app_context():
        from wastetrack.services import get_services

        services = get_services()
        reset = services.registry.reset_daily_counts(services.clock().date())
        logger.info("Scheduler: reset daily counters for %d worker(s)", reset)


def init_scheduler(app):
    """Initialize and start the background scheduler.

    Only runs if SCHEDULER_ENABLED is set in the app config.

    Returns:
        BackgroundScheduler: the running scheduler, or None when disabled
    """
    if not app.config.get("SCHEDULER_ENABLED"):
        logger.info("Scheduler disabled (set SCHEDULER_ENABLED=true to enable)")
        return None

    scheduler = BackgroundScheduler(daemon=True, timezone=app.config["TIMEZONE"])

    scheduler.add_job(
        _sweep_expired_windows,
        "interval",
        minutes=app.config["RELEASE_SWEEP_MINUTES"],
        args=[app],
        id="sweep_expired_windows",
        name="Release workers with expired handling windows",
    )

    scheduler.add_job(
        _roll_daily_counters,
        "cron",
        hour=0,
        minute=0,
        # Counter days are UTC dates
        timezone="UTC",
        args=[app],
        id="roll_daily_counters",
        name="Reset daily completion counters",
    )

    scheduler.start()
    logger.info("Background scheduler started with 2 periodic jobs")
    return scheduler
