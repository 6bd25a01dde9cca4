"""
Scheduled and one-shot profile sync jobs.

The scheduler starts one sync per day at the configured UTC time (08:10 by
default). A run that collides with a manually started sync is skipped.
"""

import asyncio
from datetime import UTC, datetime, timedelta

from codesync.config import settings
from codesync.features.profile_sync.bootstrap import sync_engine
from codesync.features.profile_sync.domain.errors import SyncJobAlreadyRunningError
from codesync.features.profile_sync.services.controller import SyncJobController
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_ERROR_SECONDS = 3600


def next_run_after(now: datetime, hour: int, minute: int) -> datetime:
    """Next occurrence of hour:minute strictly after ``now``."""
    next_run = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if now >= next_run:
        next_run += timedelta(days=1)
    return next_run


async def run_scheduled_sync(controller: SyncJobController) -> str | None:
    """Start a scheduled sync. Returns None when another sync is running."""
    try:
        sync_id = await controller.start(trigger="scheduled")
    except SyncJobAlreadyRunningError as e:
        logger.warning(
            "Scheduled profile sync skipped, a sync is already running",
            active_sync_id=e.active_sync_id,
        )
        return None

    logger.info("Scheduled profile sync started", sync_id=sync_id)
    return sync_id


async def start_profile_sync_scheduler(controller: SyncJobController, *, wait: bool = False):
    """
    Start the daily profile sync scheduler.

    Args:
        controller: Engine to start jobs on
        wait: Block until each scheduled job finishes before scheduling the next
    """
    hour = settings.SYNC_SCHEDULE_HOUR_UTC
    minute = settings.SYNC_SCHEDULE_MINUTE_UTC

    logger.info("Profile sync scheduler STARTED", hour_utc=hour, minute_utc=minute)

    while True:
        try:
            now = datetime.now(UTC)
            next_run = next_run_after(now, hour, minute)
            sleep_seconds = (next_run - now).total_seconds()

            logger.info(
                "Profile sync scheduled",
                next_run=next_run.isoformat(),
                sleep_seconds=sleep_seconds,
            )
            await asyncio.sleep(sleep_seconds)

            sync_id = await run_scheduled_sync(controller)
            if wait and sync_id:
                snapshot = await controller.wait(sync_id)
                logger.info("Scheduled profile sync finished", **snapshot.summary())

        except asyncio.CancelledError:
            logger.info("Profile sync scheduler cancelled")
            break
        except Exception as e:
            logger.error(
                "Error in profile sync scheduler, will retry",
                error=str(e),
                error_type=type(e).__name__,
            )
            await asyncio.sleep(RETRY_AFTER_ERROR_SECONDS)


async def run_profile_sync() -> None:
    """Run one sync to completion (CLI)."""
    async with sync_engine() as controller:
        sync_id = await controller.start(trigger="cli")
        snapshot = await controller.wait(sync_id)

    logger.info("Profile sync run finished", **snapshot.summary())


async def run_profile_sync_scheduler() -> None:
    """Run the daily scheduler in a standalone worker process (CLI)."""
    async with sync_engine() as controller:
        await start_profile_sync_scheduler(controller, wait=True)
