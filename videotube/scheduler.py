import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from videotube.config import settings
from videotube.database import get_db_context
from videotube.exceptions import TransientStoreError
from videotube.services.view_service import ViewService

scheduler = AsyncIOScheduler()

logger = logging.getLogger(__name__)

RECONCILE_JOB_ID = "reconcile_view_counters"


async def reconcile_view_counters() -> int:
    async with get_db_context() as db:
        try:
            repaired = await ViewService(db).reconcile_all()
        except TransientStoreError as e:
            logger.warning(f"[Scheduler] View reconciliation skipped: {e.message}")
            return 0

    logger.info(f"[Scheduler] View reconciliation finished, {repaired} counters repaired")
    return repaired


def schedule_view_reconciliation(interval_minutes: int | None = None) -> bool:
    """Register the periodic reconciliation job. A non-positive interval disables it."""
    interval_minutes = settings.view_reconcile_interval_minutes if interval_minutes is None else interval_minutes
    if interval_minutes <= 0:
        logger.info("[Scheduler] Periodic view reconciliation disabled")
        return False

    scheduler.add_job(
        reconcile_view_counters,
        trigger=IntervalTrigger(minutes=interval_minutes),
        id=RECONCILE_JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    logger.info(f"[Scheduler] View reconciliation scheduled every {interval_minutes} minutes")
    return True
