import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from codesync.features.profile_sync.domain.errors import SyncJobAlreadyRunningError
from codesync.features.profile_sync.jobs import scheduled_sync_job
from codesync.features.profile_sync.jobs.scheduled_sync_job import (
    next_run_after,
    run_scheduled_sync,
)
from codesync.features.profile_sync.jobs.sweep_job import start_sync_job_sweeper


def test_next_run_later_today():
    now = datetime(2024, 5, 1, 6, 30, tzinfo=UTC)

    assert next_run_after(now, 8, 10) == datetime(2024, 5, 1, 8, 10, tzinfo=UTC)


def test_next_run_rolls_over_to_tomorrow():
    now = datetime(2024, 5, 1, 8, 10, tzinfo=UTC)

    assert next_run_after(now, 8, 10) == datetime(2024, 5, 2, 8, 10, tzinfo=UTC)


@pytest.mark.asyncio
async def test_scheduled_sync_uses_scheduled_trigger():
    controller = AsyncMock()
    controller.start.return_value = "sync-1"

    assert await run_scheduled_sync(controller) == "sync-1"
    controller.start.assert_awaited_once_with(trigger="scheduled")


@pytest.mark.asyncio
async def test_scheduled_sync_skips_when_sync_running():
    controller = AsyncMock()
    controller.start.side_effect = SyncJobAlreadyRunningError("sync-manual")

    assert await run_scheduled_sync(controller) is None


@pytest.mark.asyncio
async def test_scheduler_starts_sync_after_sleeping(monkeypatch):
    controller = AsyncMock()
    controller.start.return_value = "sync-1"
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) > 1:
            raise asyncio.CancelledError

    monkeypatch.setattr(scheduled_sync_job.asyncio, "sleep", fake_sleep)

    await scheduled_sync_job.start_profile_sync_scheduler(controller)

    assert len(sleeps) == 2
    assert 0 < sleeps[0] <= 24 * 3600
    controller.start.assert_awaited_once_with(trigger="scheduled")


@pytest.mark.asyncio
async def test_sweeper_calls_sweep_periodically():
    store = MagicMock()
    store.sweep = AsyncMock()
    store.retention = timedelta(hours=24)

    task = asyncio.create_task(start_sync_job_sweeper(store, interval_minutes=0.0001))
    await asyncio.sleep(0.05)
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)

    assert store.sweep.await_count >= 1
