"""
Entry point for starting, polling and cancelling profile sync jobs.

At most one job runs at a time. ``start`` returns as soon as the job record
exists; the worker pool runs as a background task owned by the controller.
"""

import asyncio
import functools

from codesync.features.profile_sync.domain.errors import SyncJobAlreadyTerminalError
from codesync.features.profile_sync.domain.models import SyncJobRecord, SyncJobSnapshot
from codesync.features.profile_sync.repository.job_store import SyncJobStore
from codesync.features.profile_sync.services.worker_pool import SyncWorkerPool
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SyncJobController:
    def __init__(
        self,
        store: SyncJobStore,
        pool: SyncWorkerPool,
        stall_after_seconds: float | None = 120,
    ):
        self.store = store
        self.pool = pool
        self.stall_after_seconds = stall_after_seconds
        self._tasks: dict[str, asyncio.Task] = {}

    async def start(self, trigger: str = "manual") -> str:
        """
        Create a running job and launch its worker pool in the background.

        The roster is fetched by the pool once the task runs, so a snapshot
        taken right after this returns reports total_users == 0.

        Raises:
            SyncJobAlreadyRunningError: If a job is already running
        """
        record = await self.store.create(trigger)

        task = asyncio.create_task(self.pool.run(record.id), name=f"profile-sync-{record.id}")
        self._tasks[record.id] = task
        task.add_done_callback(functools.partial(self._on_task_done, record.id))

        logger.info("Profile sync launched", sync_id=record.id, trigger=trigger)
        return record.id

    def _on_task_done(self, sync_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(sync_id, None)

        if task.cancelled():
            logger.warning("Profile sync task was cancelled", sync_id=sync_id)
            return

        error = task.exception()
        if error is not None:
            logger.error(
                "Profile sync task crashed",
                sync_id=sync_id,
                error=str(error),
                error_type=type(error).__name__,
            )

    async def get_status(self, sync_id: str) -> SyncJobSnapshot:
        """
        Raises:
            SyncJobNotFoundError: Unknown or evicted job
        """
        snapshot = await self.store.snapshot(sync_id, self.stall_after_seconds)
        if snapshot.stalled:
            logger.warning(
                "Profile sync appears stalled",
                sync_id=sync_id,
                last_updated=snapshot.last_updated.isoformat(),
                processed_users=snapshot.processed_users,
                total_users=snapshot.total_users,
            )
        return snapshot

    async def cancel(self, sync_id: str) -> bool:
        """
        Request cooperative cancellation. Idempotent while the job runs.

        Returns:
            True when this call set the flag, False if it was already set

        Raises:
            SyncJobNotFoundError: Unknown or evicted job
            SyncJobAlreadyTerminalError: The job already finished
        """

        def _request(record: SyncJobRecord) -> bool:
            if record.state.is_terminal:
                raise SyncJobAlreadyTerminalError(record.id, record.state.value)
            return record.request_cancel()

        newly_requested = await self.store.mutate(sync_id, _request)
        logger.info(
            "Profile sync cancellation requested",
            sync_id=sync_id,
            already_requested=not newly_requested,
        )
        return newly_requested

    async def active_job(self) -> SyncJobSnapshot | None:
        record = await self.store.active_job()
        if record is None:
            return None
        snapshot = await self.store.snapshot(record.id, self.stall_after_seconds)
        return None if snapshot.is_terminal else snapshot

    async def wait(self, sync_id: str, timeout: float | None = None) -> SyncJobSnapshot:
        """
        Wait for the background task of a job, then return its snapshot.

        Raises:
            TimeoutError: The job is still running after ``timeout`` seconds
        """
        task = self._tasks.get(sync_id)
        if task is not None:
            _, pending = await asyncio.wait({task}, timeout=timeout)
            if pending:
                raise TimeoutError(f"Sync job {sync_id} still running after {timeout}s")
        return await self.store.snapshot(sync_id)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Cancel the active job, let it drain, then cancel whatever is left."""
        active = await self.store.active_job()
        if active is not None:
            try:
                await self.cancel(active.id)
            except SyncJobAlreadyTerminalError:
                pass

        tasks = list(self._tasks.values())
        if not tasks:
            return

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning(
                "Profile sync did not drain before shutdown timeout, cancelling",
                pending=len(pending),
                timeout=timeout,
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
