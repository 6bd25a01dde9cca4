"""
In-memory store of sync job records.

Records live for the lifetime of the process. Terminal records are evicted by
``sweep`` once their completion time is older than the retention window.
"""

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TypeVar

from codesync.features.profile_sync.domain.errors import (
    SyncJobAlreadyRunningError,
    SyncJobNotFoundError,
)
from codesync.features.profile_sync.domain.models import (
    SyncJobRecord,
    SyncJobSnapshot,
    SyncJobState,
    utcnow,
)
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SyncJobStore:
    def __init__(self, retention: timedelta = timedelta(hours=24)):
        self.retention = retention
        self._records: dict[str, SyncJobRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def create(self, trigger: str = "manual") -> SyncJobRecord:
        """
        Create a new running record.

        The single-running-job check and the insert happen under the store
        lock, so two concurrent callers can never both be admitted.

        Raises:
            SyncJobAlreadyRunningError: If another record is still running
        """
        async with self._lock:
            for record in self._records.values():
                if record.state is SyncJobState.RUNNING:
                    raise SyncJobAlreadyRunningError(record.id)

            record = SyncJobRecord(id=str(uuid.uuid4()), trigger=trigger)
            self._records[record.id] = record

        logger.info("Sync job record created", sync_id=record.id, trigger=trigger)
        return record

    def get(self, sync_id: str) -> SyncJobRecord:
        record = self._records.get(sync_id)
        if record is None:
            raise SyncJobNotFoundError(sync_id)
        return record

    async def mutate(self, sync_id: str, fn: Callable[[SyncJobRecord], T]) -> T:
        """Apply ``fn`` to the record while holding its lock."""
        record = self.get(sync_id)
        async with record.lock:
            return fn(record)

    async def snapshot(
        self, sync_id: str, stall_after_seconds: float | None = None
    ) -> SyncJobSnapshot:
        return await self.mutate(sync_id, lambda record: record.snapshot(stall_after_seconds))

    async def active_job(self) -> SyncJobRecord | None:
        async with self._lock:
            for record in self._records.values():
                if record.state is SyncJobState.RUNNING:
                    return record
        return None

    async def sweep(self, now: datetime | None = None) -> int:
        """
        Evict terminal records older than the retention window.

        Returns:
            Number of records removed
        """
        now = now or utcnow()
        cutoff = now - self.retention

        async with self._lock:
            expired = [
                sync_id
                for sync_id, record in self._records.items()
                if record.state.is_terminal
                and record.completed_time is not None
                and record.completed_time < cutoff
            ]
            for sync_id in expired:
                del self._records[sync_id]

        if expired:
            logger.info(
                "Evicted expired sync job records",
                removed=len(expired),
                remaining=len(self._records),
            )
        return len(expired)
