"""Background cache warm-up."""
import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from saas_dashboard.config import get_settings
from saas_dashboard.metrics.ranges import resolve_time_range
from saas_dashboard.metrics.service import get_dashboard_service

logger = logging.getLogger(__name__)
settings = get_settings()

scheduler = AsyncIOScheduler()


async def warm_cache() -> list[str]:
    """Scheduled job: refresh the cached series for the default ranges."""
    logger.info("Starting scheduled cache warm-up")
    service = get_dashboard_service()
    warmed = []

    for preset in settings.warm_range_presets:
        start_date, end_date = resolve_time_range(preset)
        series = await service.get_daily_series(start_date, end_date, refresh=True)
        if series:
            warmed.append(preset)

    logger.info(f"Cache warm-up finished: {', '.join(warmed) or 'nothing cached'}")
    return warmed


def start_scheduler():
    """Start the background scheduler."""
    scheduler.add_job(
        warm_cache,
        trigger=IntervalTrigger(minutes=settings.cache_warm_interval_minutes),
        id="warm_cache",
        name="Warm Dashboard Cache",
        replace_existing=True,
        next_run_time=datetime.now(),  # Run immediately on startup
    )

    scheduler.start()
    logger.info("Scheduler started with jobs: warm_cache")


def stop_scheduler():
    """Stop the scheduler."""
    scheduler.shutdown()
    logger.info("Scheduler stopped")
