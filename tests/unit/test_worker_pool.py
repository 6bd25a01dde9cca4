"""
Tests for the worker pool: outcome classification, counters and terminal states.
"""

import pytest

from codesync.features.profile_sync.adapters.base import AdapterError, AdapterRejectedError
from codesync.features.profile_sync.domain.models import RosterUser, SyncJobState
from tests.fakes import ConcurrencyTracker, FakeAdapter, FakeProfileStore, FakeRoster, make_users


async def _run(controller):
    sync_id = await controller.start()
    return await controller.wait(sync_id, timeout=10)


@pytest.mark.asyncio
async def test_all_profiles_updated(build_engine):
    """Three users on two platforms, every adapter succeeds."""
    profile_store = FakeProfileStore()
    controller = build_engine(make_users(3), profile_store=profile_store)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.updated_profiles == 6
    assert snapshot.failed_profiles == 0
    assert snapshot.processed_users == 3
    assert snapshot.total_profiles == 6
    assert snapshot.progress_percent == 100
    assert snapshot.profiles_by_platform == {"leetcode": 3, "github": 3}
    assert snapshot.completed_time is not None
    assert len(profile_store.upserts) == 6


@pytest.mark.asyncio
async def test_empty_username_is_rejected(build_engine):
    users = [
        RosterUser("u1", "User 1", {"leetcode": "", "github": "gh-one"}),
        RosterUser("u2", "User 2", {"leetcode": "lc-two", "github": "gh-two"}),
    ]
    controller = build_engine(users)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.failed_profiles == 0
    assert snapshot.updated_profiles == 3
    assert snapshot.rejected_profiles == 1
    assert len(snapshot.rejected_profiles_list) == 1
    rejection = snapshot.rejected_profiles_list[0]
    assert (rejection.user_id, rejection.platform) == ("u1", "leetcode")
    assert "Empty username" in rejection.detail


@pytest.mark.asyncio
async def test_roster_failure_fails_job(build_engine):
    controller = build_engine(roster=FakeRoster(error=RuntimeError("users table unavailable")))

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.FAILED
    assert "users table unavailable" in snapshot.error
    assert snapshot.processed_users == 0
    assert snapshot.completed_time is not None


@pytest.mark.asyncio
async def test_adapter_failures_are_counted_and_job_continues(build_engine):
    adapters = {
        "leetcode": FakeAdapter(
            "leetcode",
            results={"leetcode-user1": AdapterError("HTTP 503", platform="leetcode")},
        ),
        "github": FakeAdapter(
            "github",
            results={"github-user2": AdapterRejectedError("User not found on github")},
        ),
    }
    controller = build_engine(make_users(2), adapters)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.processed_users == 2
    assert snapshot.total_profiles == 4
    assert snapshot.updated_profiles == 2
    assert snapshot.failed_profiles == 1
    assert snapshot.rejected_profiles == 1
    assert snapshot.failures_by_platform == {"leetcode": 1}
    assert snapshot.failed_profiles_list[0].detail.endswith("HTTP 503")


@pytest.mark.asyncio
async def test_unexpected_adapter_exception_is_a_failure(build_engine):
    adapters = {"leetcode": FakeAdapter("leetcode", results={"leetcode-user1": KeyError("ranking")})}
    controller = build_engine(make_users(1, ("leetcode",)), adapters)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.failed_profiles == 1
    assert "KeyError" in snapshot.failed_profiles_list[0].detail


@pytest.mark.asyncio
async def test_adapter_timeout_is_a_failure(build_engine):
    adapters = {"leetcode": FakeAdapter("leetcode", delay=1.0)}
    controller = build_engine(make_users(1, ("leetcode",)), adapters, adapter_timeout=0.05)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.failed_profiles == 1
    assert "Timed out" in snapshot.failed_profiles_list[0].detail


@pytest.mark.asyncio
async def test_unsupported_platform_is_rejected(build_engine):
    users = [RosterUser("u1", "User 1", {"codechef": "chef", "leetcode": "lc"})]
    controller = build_engine(users, {"leetcode": FakeAdapter("leetcode")})

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.updated_profiles == 1
    assert snapshot.failed_profiles == 0
    assert snapshot.rejected_profiles_list[0].platform == "codechef"


@pytest.mark.asyncio
async def test_profile_store_write_failure_is_a_failure(build_engine):
    profile_store = FakeProfileStore(fail_for={("u1", "github")})
    controller = build_engine(make_users(1), profile_store=profile_store)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.updated_profiles == 1
    assert snapshot.failed_profiles == 1
    assert "Profile store write failed" in snapshot.failed_profiles_list[0].detail


@pytest.mark.asyncio
async def test_user_without_platforms_only_counts_as_processed(build_engine):
    users = [RosterUser("u1", "User 1", {}), *make_users(1)]
    controller = build_engine(users)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.processed_users == 2
    assert snapshot.total_profiles == 2


@pytest.mark.asyncio
async def test_empty_roster_completes(build_engine):
    controller = build_engine([])

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.COMPLETED
    assert snapshot.total_users == 0
    assert snapshot.progress_percent == 0


@pytest.mark.asyncio
async def test_concurrency_never_exceeds_worker_count(build_engine):
    tracker = ConcurrencyTracker()
    platforms = tuple(f"platform{i}" for i in range(10))
    shared = FakeAdapter("shared", delay=0.02, tracker=tracker)
    users = [
        RosterUser(f"u{i}", f"User {i}", {platform: f"user{i}"})
        for i, platform in enumerate(platforms)
    ]
    controller = build_engine(users, {platform: shared for platform in platforms}, max_workers=3)

    snapshot = await _run(controller)

    assert snapshot.processed_users == 10
    assert 1 <= tracker.peak <= 3


@pytest.mark.asyncio
async def test_platforms_of_one_user_are_fetched_sequentially(build_engine):
    tracker = ConcurrencyTracker()
    platforms = ("leetcode", "github", "hackerrank")
    adapters = {p: FakeAdapter(p, delay=0.01, tracker=tracker) for p in platforms}
    controller = build_engine(make_users(1, platforms), adapters, max_workers=4)

    snapshot = await _run(controller)

    assert snapshot.updated_profiles == 3
    assert tracker.peak == 1


@pytest.mark.asyncio
async def test_unexpected_worker_error_fails_job(build_engine):
    # A roster entry without a usernames mapping breaks the worker itself
    users = [*make_users(2), RosterUser("broken", "Broken", None)]
    controller = build_engine(users, max_workers=1)

    snapshot = await _run(controller)

    assert snapshot.state is SyncJobState.FAILED
    assert snapshot.error.startswith("Worker failed")
    assert snapshot.processed_users == 2
    assert snapshot.completed_time is not None
