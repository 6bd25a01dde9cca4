"""
Wiring for the profile sync engine.

Builds one SyncJobController from settings. The web app and the CLI worker
both go through here so they run the same engine configuration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import httpx

from codesync.config import settings
from codesync.db.pool import db_pool
from codesync.features.profile_sync.adapters.registry import (
    AdapterRegistry,
    build_default_registry,
)
from codesync.features.profile_sync.repository.job_store import SyncJobStore
from codesync.features.profile_sync.repository.profile_repository import PostgresProfileStore
from codesync.features.profile_sync.repository.roster_repository import PostgresRosterProvider
from codesync.features.profile_sync.services.controller import SyncJobController
from codesync.features.profile_sync.services.throttle import PlatformThrottle
from codesync.features.profile_sync.services.worker_pool import (
    ProfileStore,
    RosterProvider,
    SyncWorkerPool,
)


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.ADAPTER_REQUEST_TIMEOUT_SECONDS,
        headers={"User-Agent": "codesync-profile-sync"},
        follow_redirects=True,
    )


def build_sync_controller(
    client: httpx.AsyncClient,
    *,
    roster: RosterProvider | None = None,
    profile_store: ProfileStore | None = None,
    adapters: AdapterRegistry | None = None,
    store: SyncJobStore | None = None,
) -> SyncJobController:
    store = store or SyncJobStore(retention=timedelta(hours=settings.SYNC_JOB_RETENTION_HOURS))
    pool = SyncWorkerPool(
        store=store,
        roster=roster or PostgresRosterProvider(),
        adapters=adapters or build_default_registry(client),
        profile_store=profile_store or PostgresProfileStore(),
        throttle=PlatformThrottle(settings.platform_interval_seconds),
        max_workers=settings.SYNC_MAX_WORKERS,
        adapter_timeout=settings.ADAPTER_CALL_TIMEOUT_SECONDS,
    )
    return SyncJobController(
        store=store,
        pool=pool,
        stall_after_seconds=settings.SYNC_STALL_WARNING_SECONDS,
    )


@asynccontextmanager
async def sync_engine() -> AsyncIterator[SyncJobController]:
    """
    Standalone engine for processes without the web app (CLI worker).

    Opens the database pool and the shared HTTP client, and on exit drains
    any running job before closing both.
    """
    await db_pool.initialize()
    client = create_http_client()
    controller = build_sync_controller(client)
    try:
        yield controller
    finally:
        await controller.shutdown(timeout=settings.SYNC_SHUTDOWN_TIMEOUT_SECONDS)
        await client.aclose()
        await db_pool.close()
