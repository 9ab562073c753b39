# tasks/scheduler.py
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pymongo.database import Database
import logging
from duroos.config import settings
from duroos.services import homepage_service, analytics_service
from duroos.services.memory_cache import TTLCache

logger = logging.getLogger(__name__)

# Shorter than HOMEPAGE_CACHE_TTL so warm entries are replaced before they lapse.
WARM_HOMEPAGE_MINUTES = 4

def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler()

def schedule_jobs(scheduler: AsyncIOScheduler, db: Database, cache: TTLCache) -> None:
    scheduler.add_job(
        refresh_site_stats,
        trigger=IntervalTrigger(minutes=settings.STATS_REFRESH_MINUTES),
        args=[db],
        id="refresh_site_stats",
        replace_existing=True,
    )
    scheduler.add_job(
        warm_homepage_cache,
        trigger=IntervalTrigger(minutes=WARM_HOMEPAGE_MINUTES),
        args=[db, cache],
        id="warm_homepage_cache",
        replace_existing=True,
    )

async def refresh_site_stats(db: Database) -> None:
    try:
        stats = await analytics_service.refresh_cached_stats(db)
        logger.info(f"Site stats refreshed: {stats['totalPlays']} plays, {stats['totalPageViews']} page views")
    except Exception as e:
        logger.error(f"Failed to refresh site stats: {str(e)}")

async def warm_homepage_cache(db: Database, cache: TTLCache) -> None:
    logger.debug("Warming homepage cache")
    await homepage_service.warm_homepage_cache(db, cache)
