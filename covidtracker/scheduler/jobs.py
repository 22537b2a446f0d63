"""COVID Tracker — Scheduler Jobs.

APScheduler daily job that runs the reconciliation pipeline at the configured
hour, plus a startup refresh when the stored dataset is stale.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from covidtracker.config import settings
from covidtracker.analyzer.pipeline import get_pipeline
from covidtracker.storage.gateway import PersistenceError, is_stale
from covidtracker.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def daily_refresh_job() -> bool:
    """Run one reconciliation cycle."""
    logger.info("Scheduled refresh starting...")
    success = await get_pipeline().refresh()
    if success:
        logger.info("Scheduled refresh complete")
    else:
        logger.error("Scheduled refresh failed")
    return success


def needs_refresh() -> bool:
    """True when the last successful refresh is older than the configured age."""
    try:
        status = get_pipeline().gateway.last_refreshed()
    except PersistenceError as e:
        logger.warning(f"Could not read refresh status: {e}")
        return True
    return is_stale(status, settings.stale_after_hours)


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_refresh_job,
        "cron",
        hour=settings.refresh_hour,
        minute=0,
        id="daily_refresh",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    if needs_refresh():
        # Run once right away; the cron keeps it fresh afterwards
        scheduler.add_job(daily_refresh_job, id="startup_refresh", replace_existing=True)
        logger.info("Stored data is stale, refresh queued")
    scheduler.start()
    logger.info(f"Scheduler started. Daily refresh at {settings.refresh_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
