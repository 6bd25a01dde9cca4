"""
Per-platform request pacing.

Each platform gets one lock (at most one request in flight) and a minimum
interval between the starts of two consecutive requests.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class PlatformThrottle:
    def __init__(
        self,
        interval_for: Callable[[str], float],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._interval_for = interval_for
        self._clock = clock
        self._sleep = sleep
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_start: dict[str, float] = {}

    def _lock_for(self, platform: str) -> asyncio.Lock:
        lock = self._locks.get(platform)
        if lock is None:
            lock = self._locks[platform] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def slot(self, platform: str) -> AsyncIterator[None]:
        """Hold the platform's slot for the duration of one request."""
        async with self._lock_for(platform):
            interval = self._interval_for(platform)
            last = self._last_start.get(platform)
            if last is not None and interval > 0:
                wait = interval - (self._clock() - last)
                if wait > 0:
                    logger.debug("Throttling platform request", platform=platform, wait_seconds=round(wait, 3))
                    await self._sleep(wait)

            self._last_start[platform] = self._clock()
            yield
