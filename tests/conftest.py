from datetime import timedelta

import pytest

from codesync.auth.api_key import require_admin_api_key
from codesync.features.profile_sync.adapters.base import ProfileAdapter
from codesync.features.profile_sync.adapters.registry import AdapterRegistry
from codesync.features.profile_sync.domain.models import RosterUser
from codesync.features.profile_sync.repository.job_store import SyncJobStore
from codesync.features.profile_sync.services.controller import SyncJobController
from codesync.features.profile_sync.services.throttle import PlatformThrottle
from codesync.features.profile_sync.services.worker_pool import SyncWorkerPool
from tests.fakes import FakeAdapter, FakeProfileStore, FakeRoster


@pytest.fixture
def fake_profile_store():
    return FakeProfileStore()


@pytest.fixture
def build_engine():
    """Build a controller wired to fakes, without throttling."""

    def _build(
        users: list[RosterUser] | None = None,
        adapters: dict[str, ProfileAdapter] | None = None,
        *,
        roster: FakeRoster | None = None,
        profile_store: FakeProfileStore | None = None,
        max_workers: int = 2,
        adapter_timeout: float = 5.0,
        stall_after_seconds: float | None = 120,
    ) -> SyncJobController:
        if adapters is None:
            adapters = {
                "leetcode": FakeAdapter("leetcode"),
                "github": FakeAdapter("github"),
            }
        store = SyncJobStore(retention=timedelta(hours=24))
        pool = SyncWorkerPool(
            store=store,
            roster=roster or FakeRoster(users),
            adapters=AdapterRegistry(adapters),
            profile_store=profile_store or FakeProfileStore(),
            throttle=PlatformThrottle(lambda platform: 0.0),
            max_workers=max_workers,
            adapter_timeout=adapter_timeout,
        )
        return SyncJobController(store=store, pool=pool, stall_after_seconds=stall_after_seconds)

    return _build


@pytest.fixture
def admin_override():
    def _override():
        return "test-admin-key"

    return _override


@pytest.fixture
def apply_admin_override(admin_override):
    def _apply(app):
        app.dependency_overrides[require_admin_api_key] = admin_override

    return _apply
