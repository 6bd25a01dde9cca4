import asyncio
from datetime import timedelta

import pytest

from codesync.features.profile_sync.domain.errors import (
    SyncJobAlreadyRunningError,
    SyncJobAlreadyTerminalError,
    SyncJobNotFoundError,
)
from codesync.features.profile_sync.domain.models import SyncJobState, utcnow
from codesync.features.profile_sync.services.worker_pool import SHUTDOWN_INTERRUPT_MESSAGE
from tests.fakes import FakeAdapter, FakeRoster, make_users


def _slow_adapters(delay: float = 0.2):
    return {
        "leetcode": FakeAdapter("leetcode", delay=delay),
        "github": FakeAdapter("github", delay=delay),
    }


@pytest.mark.asyncio
async def test_start_returns_immediately_with_running_job(build_engine):
    controller = build_engine(make_users(2), _slow_adapters())

    sync_id = await controller.start()
    snapshot = await controller.get_status(sync_id)

    assert snapshot.state is SyncJobState.RUNNING
    assert snapshot.trigger == "manual"
    assert snapshot.completed_time is None

    await controller.cancel(sync_id)
    await controller.wait(sync_id, timeout=5)


@pytest.mark.asyncio
async def test_start_while_running_is_rejected(build_engine):
    roster = FakeRoster(make_users(2))
    controller = build_engine(roster=roster, adapters=_slow_adapters())

    sync_id = await controller.start()
    with pytest.raises(SyncJobAlreadyRunningError) as exc_info:
        await controller.start()

    assert exc_info.value.active_sync_id == sync_id
    assert len(controller.store) == 1

    await controller.cancel(sync_id)
    await controller.wait(sync_id, timeout=5)
    assert roster.calls == 1


@pytest.mark.asyncio
async def test_cancel_twice_transitions_once(build_engine):
    controller = build_engine(make_users(5), _slow_adapters(), max_workers=1)

    sync_id = await controller.start()
    assert await controller.cancel(sync_id) is True
    assert await controller.cancel(sync_id) is False

    snapshot = await controller.wait(sync_id, timeout=5)

    assert snapshot.state is SyncJobState.CANCELLED
    assert snapshot.cancel_requested is True
    assert snapshot.error is None

    with pytest.raises(SyncJobAlreadyTerminalError):
        await controller.cancel(sync_id)


@pytest.mark.asyncio
async def test_cancel_during_last_user_ends_cancelled(build_engine):
    adapters = {"leetcode": FakeAdapter("leetcode", delay=0.3)}
    controller = build_engine(make_users(1, ("leetcode",)), adapters, max_workers=1)

    sync_id = await controller.start()
    await asyncio.sleep(0.05)
    assert (await controller.get_status(sync_id)).state is SyncJobState.RUNNING

    assert await controller.cancel(sync_id) is True
    assert await controller.cancel(sync_id) is False
    snapshot = await controller.wait(sync_id, timeout=5)

    assert snapshot.state is SyncJobState.CANCELLED
    assert snapshot.processed_users == 1
    assert snapshot.updated_profiles == 1
    assert snapshot.completed_time is not None


@pytest.mark.asyncio
async def test_cancel_with_empty_roster_ends_cancelled(build_engine):
    controller = build_engine([])

    sync_id = await controller.start()
    assert await controller.cancel(sync_id) is True
    snapshot = await controller.wait(sync_id, timeout=5)

    assert snapshot.state is SyncJobState.CANCELLED
    assert snapshot.total_users == 0
    assert snapshot.completed_time is not None


@pytest.mark.asyncio
async def test_roster_size_is_known_once_pool_fetches_it(build_engine):
    controller = build_engine(make_users(3), _slow_adapters(0.05))

    sync_id = await controller.start()
    assert (await controller.get_status(sync_id)).total_users == 0

    snapshot = await controller.wait(sync_id, timeout=5)
    assert snapshot.total_users == 3
    assert snapshot.state is SyncJobState.COMPLETED


@pytest.mark.asyncio
async def test_cancel_immediately_after_start_stops_large_roster(build_engine):
    controller = build_engine(make_users(100), _slow_adapters(0.01), max_workers=4)

    sync_id = await controller.start()
    await controller.cancel(sync_id)
    snapshot = await controller.wait(sync_id, timeout=10)

    assert snapshot.state is SyncJobState.CANCELLED
    assert 0 <= snapshot.processed_users < 100
    assert snapshot.completed_time is not None


@pytest.mark.asyncio
async def test_unknown_job_is_not_found(build_engine):
    controller = build_engine([])

    with pytest.raises(SyncJobNotFoundError):
        await controller.get_status("missing")
    with pytest.raises(SyncJobNotFoundError):
        await controller.cancel("missing")


@pytest.mark.asyncio
async def test_polls_are_monotonic(build_engine):
    controller = build_engine(make_users(20), _slow_adapters(0.005), max_workers=3)
    sync_id = await controller.start()

    processed: list[int] = []
    progress: list[int] = []
    while True:
        snapshot = await controller.get_status(sync_id)
        assert 0 <= snapshot.processed_users <= snapshot.total_users
        assert snapshot.updated_profiles + snapshot.failed_profiles <= snapshot.total_profiles
        processed.append(snapshot.processed_users)
        progress.append(snapshot.progress_percent)
        if snapshot.is_terminal:
            break
        await asyncio.sleep(0.005)

    assert processed == sorted(processed)
    assert progress == sorted(progress)
    assert processed[-1] == 20


@pytest.mark.asyncio
async def test_active_job(build_engine):
    controller = build_engine(make_users(2), _slow_adapters())
    assert await controller.active_job() is None

    sync_id = await controller.start()
    assert (await controller.active_job()).id == sync_id

    await controller.cancel(sync_id)
    await controller.wait(sync_id, timeout=5)
    assert await controller.active_job() is None


@pytest.mark.asyncio
async def test_wait_times_out_without_stopping_job(build_engine):
    controller = build_engine(make_users(1), _slow_adapters(0.5))
    sync_id = await controller.start()

    with pytest.raises(TimeoutError):
        await controller.wait(sync_id, timeout=0.01)

    snapshot = await controller.wait(sync_id, timeout=5)
    assert snapshot.state is SyncJobState.COMPLETED


@pytest.mark.asyncio
async def test_stalled_job_is_flagged(build_engine):
    controller = build_engine(make_users(1), _slow_adapters(1.0), stall_after_seconds=60)
    sync_id = await controller.start()
    await asyncio.sleep(0.05)

    controller.store.get(sync_id).last_updated = utcnow() - timedelta(minutes=5)
    snapshot = await controller.get_status(sync_id)

    assert snapshot.stalled is True

    await controller.cancel(sync_id)
    await controller.wait(sync_id, timeout=5)


@pytest.mark.asyncio
async def test_shutdown_drains_job_through_cancellation(build_engine):
    controller = build_engine(make_users(3), _slow_adapters(0.05), max_workers=1)
    sync_id = await controller.start()
    await asyncio.sleep(0.01)

    await controller.shutdown(timeout=5)

    snapshot = await controller.get_status(sync_id)
    assert snapshot.state is SyncJobState.CANCELLED
    assert snapshot.error is None


@pytest.mark.asyncio
async def test_shutdown_interrupts_job_that_does_not_drain(build_engine):
    controller = build_engine(
        make_users(2), _slow_adapters(10.0), max_workers=2, adapter_timeout=30.0
    )
    sync_id = await controller.start()
    await asyncio.sleep(0.05)

    await controller.shutdown(timeout=0.1)

    snapshot = await controller.get_status(sync_id)
    assert snapshot.state is SyncJobState.CANCELLED
    assert snapshot.error == SHUTDOWN_INTERRUPT_MESSAGE
    assert snapshot.processed_users == 0
