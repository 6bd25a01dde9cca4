"""
Worker pool driving one sync job across the roster.

The roster is captured once at job start and queued. W worker tasks take
users from the queue; each worker checks the job's cancel flag before taking
the next user and processes that user's platforms one after another.

Per-profile problems never escape a worker: adapter rejections, adapter
failures, timeouts and profile store write failures are all classified into
a ProfileSyncOutcome and recorded on the job. Anything else raised by a
worker is fatal for the job: the remaining workers are cancelled and the job
ends failed.
"""

import asyncio
from typing import Protocol

from codesync.features.profile_sync.adapters.base import AdapterRejectedError
from codesync.features.profile_sync.adapters.registry import AdapterRegistry
from codesync.features.profile_sync.domain.models import (
    ProfileFailed,
    ProfileRejected,
    ProfileSyncOutcome,
    ProfileUpdated,
    RosterUser,
    SyncJobRecord,
    SyncJobState,
)
from codesync.features.profile_sync.repository.job_store import SyncJobStore
from codesync.features.profile_sync.services.throttle import PlatformThrottle
from codesync.infrastructure.observability.logging import get_logger, log_sync_summary

logger = get_logger(__name__)

SHUTDOWN_INTERRUPT_MESSAGE = "interrupted by shutdown"


class RosterProvider(Protocol):
    async def list_all_users(self) -> list[RosterUser]: ...


class ProfileStore(Protocol):
    async def upsert(self, user_id: str, platform: str, stats) -> None: ...


def _settled_state(record: SyncJobRecord) -> SyncJobState:
    if record.cancel_requested:
        return SyncJobState.CANCELLED
    return SyncJobState.COMPLETED


class SyncWorkerPool:
    def __init__(
        self,
        store: SyncJobStore,
        roster: RosterProvider,
        adapters: AdapterRegistry,
        profile_store: ProfileStore,
        throttle: PlatformThrottle,
        max_workers: int = 2,
        adapter_timeout: float = 120.0,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.store = store
        self.roster = roster
        self.adapters = adapters
        self.profile_store = profile_store
        self.throttle = throttle
        self.max_workers = max_workers
        self.adapter_timeout = adapter_timeout

    async def run(self, sync_id: str) -> None:
        """Process the whole roster for ``sync_id`` and leave the job terminal."""
        log = logger.bind(sync_id=sync_id)
        workers: list[asyncio.Task] = []

        try:
            try:
                users = await self.roster.list_all_users()
            except Exception as e:
                log.error(
                    "Roster fetch failed, aborting sync",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._finish(sync_id, SyncJobState.FAILED, f"Roster fetch failed: {e}")
                return

            await self.store.mutate(sync_id, lambda record: record.set_roster_size(len(users)))

            queue: asyncio.Queue[RosterUser] = asyncio.Queue()
            for user in users:
                queue.put_nowait(user)

            worker_count = min(self.max_workers, len(users))
            log.info("Profile sync started", total_users=len(users), workers=worker_count)

            workers = [
                asyncio.create_task(self._worker(sync_id, queue), name=f"profile-sync-worker-{i}")
                for i in range(worker_count)
            ]

            fatal: BaseException | None = None
            if workers:
                done, pending = await asyncio.wait(workers, return_when=asyncio.FIRST_EXCEPTION)
                await self._cancel_workers(pending)
                for task in done:
                    if not task.cancelled() and task.exception() is not None:
                        fatal = task.exception()
                        break

            if fatal is not None:
                log.error(
                    "Worker failed, aborting sync",
                    error=str(fatal),
                    error_type=type(fatal).__name__,
                )
                await self._finish(sync_id, SyncJobState.FAILED, f"Worker failed: {fatal}")
            else:
                state = await self.store.mutate(sync_id, _settled_state)
                await self._finish(sync_id, state)

        except asyncio.CancelledError:
            log.warning("Profile sync task cancelled")
            await self._cancel_workers(workers)
            await self._finish(sync_id, SyncJobState.CANCELLED, SHUTDOWN_INTERRUPT_MESSAGE)
            raise

        except Exception as e:
            log.exception("Profile sync failed", error=str(e), error_type=type(e).__name__)
            await self._cancel_workers(workers)
            await self._finish(sync_id, SyncJobState.FAILED, f"Sync failed: {e}")

    async def _cancel_workers(self, tasks) -> None:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _finish(self, sync_id: str, state: SyncJobState, error: str | None = None) -> None:
        def _apply(record: SyncJobRecord):
            if record.state.is_terminal:
                return None
            record.finish(state, error)
            return record.snapshot()

        snapshot = await self.store.mutate(sync_id, _apply)
        if snapshot is not None:
            log_sync_summary(snapshot.summary())

    async def _worker(self, sync_id: str, queue: asyncio.Queue) -> None:
        while True:
            if await self.store.mutate(sync_id, lambda record: record.cancel_requested):
                logger.info("Worker observed cancellation", sync_id=sync_id)
                return

            try:
                user = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            await self._sync_user(sync_id, user)

    async def _sync_user(self, sync_id: str, user: RosterUser) -> None:
        for platform, username in user.platform_usernames.items():
            outcome = await self._sync_profile(user, platform, username)
            await self.store.mutate(
                sync_id,
                lambda record: record.record_outcome(user, platform, username, outcome),
            )

        processed = await self.store.mutate(sync_id, lambda record: record.mark_user_processed())
        logger.debug(
            "User synced",
            sync_id=sync_id,
            user_id=user.user_id,
            platforms=len(user.platform_usernames),
            processed_users=processed,
        )

    async def _sync_profile(
        self, user: RosterUser, platform: str, username: str
    ) -> ProfileSyncOutcome:
        log = logger.bind(user_id=user.user_id, platform=platform, username=username)

        try:
            adapter = self.adapters.get(platform)
            async with self.throttle.slot(platform):
                stats = await asyncio.wait_for(adapter.fetch(username), timeout=self.adapter_timeout)
        except AdapterRejectedError as e:
            log.info("Profile rejected", reason=str(e))
            return ProfileRejected(str(e))
        except TimeoutError:
            log.warning("Profile fetch timed out", timeout=self.adapter_timeout)
            return ProfileFailed(f"Timed out after {self.adapter_timeout}s")
        except Exception as e:
            log.warning("Profile fetch failed", error=str(e), error_type=type(e).__name__)
            return ProfileFailed(f"{type(e).__name__}: {e}")

        try:
            await self.profile_store.upsert(user.user_id, platform, stats)
        except Exception as e:
            log.error(
                "Profile store write failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return ProfileFailed(f"Profile store write failed: {e}")

        return ProfileUpdated(stats)
