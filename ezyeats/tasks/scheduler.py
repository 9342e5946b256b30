from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from ezyeats.config import settings
from ezyeats.tasks.mirror_sync import rebuild_live_mirror
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def start_scheduler():
    """Start background task scheduler"""
    if settings.MIRROR_SYNC_INTERVAL_MINUTES <= 0:
        logger.info("Mirror reconciliation disabled")
        return

    # Rebuild the live-sync mirror from the durable store
    scheduler.add_job(
        rebuild_live_mirror,
        IntervalTrigger(minutes=settings.MIRROR_SYNC_INTERVAL_MINUTES),
        id="rebuild_live_mirror",
        name="Rebuild live-sync order mirror",
        replace_existing=True
    )

    scheduler.start()
    logger.info("Background scheduler started")


def stop_scheduler():
    """Stop background task scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped")
