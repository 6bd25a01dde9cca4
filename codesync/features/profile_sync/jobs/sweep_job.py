"""
Retention sweeper for finished sync jobs.

Terminal job records stay queryable for the retention window (24 hours by
default), then the sweeper evicts them.
"""

import asyncio

from codesync.config import settings
from codesync.features.profile_sync.repository.job_store import SyncJobStore
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


async def start_sync_job_sweeper(store: SyncJobStore, interval_minutes: float | None = None):
    """
    Periodically evict expired job records.

    This should be called in main.py lifespan:
        asyncio.create_task(start_sync_job_sweeper(store))
    """
    interval_minutes = interval_minutes or settings.SYNC_SWEEP_INTERVAL_MINUTES

    logger.info(
        "Sync job sweeper STARTED",
        interval_minutes=interval_minutes,
        retention_hours=store.retention.total_seconds() / 3600,
    )

    while True:
        try:
            await asyncio.sleep(interval_minutes * 60)
            await store.sweep()

        except asyncio.CancelledError:
            logger.info("Sync job sweeper cancelled")
            break
        except Exception as e:
            logger.error(
                "Error in sync job sweeper", error=str(e), error_type=type(e).__name__
            )
