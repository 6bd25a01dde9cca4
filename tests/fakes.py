"""
In-memory collaborators for the profile sync engine.
"""

import asyncio

from codesync.db.helpers import DatabaseError
from codesync.features.profile_sync.adapters.base import ProfileAdapter
from codesync.features.profile_sync.domain.models import ProfileStats, RosterUser


class FakeRoster:
    def __init__(self, users: list[RosterUser] | None = None, error: Exception | None = None):
        self.users = users or []
        self.error = error
        self.calls = 0

    async def list_all_users(self) -> list[RosterUser]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.users)


class FakeProfileStore:
    def __init__(self, fail_for: set[tuple[str, str]] | None = None):
        self.fail_for = fail_for or set()
        self.upserts: list[tuple[str, str, ProfileStats]] = []

    async def upsert(self, user_id: str, platform: str, stats: ProfileStats) -> None:
        if (user_id, platform) in self.fail_for:
            raise DatabaseError("connection reset", operation="transaction")
        self.upserts.append((user_id, platform, stats))


class ConcurrencyTracker:
    def __init__(self):
        self.current = 0
        self.peak = 0

    def enter(self) -> None:
        self.current += 1
        self.peak = max(self.peak, self.current)

    def exit(self) -> None:
        self.current -= 1


class FakeAdapter(ProfileAdapter):
    """
    In-memory adapter. ``results`` maps usernames to a score or an exception
    to raise; unknown usernames score 10.
    """

    def __init__(
        self,
        platform: str,
        results: dict | None = None,
        delay: float = 0.0,
        tracker: ConcurrencyTracker | None = None,
    ):
        self.platform = platform
        self.results = results or {}
        self.delay = delay
        self.tracker = tracker
        self.calls: list[str] = []

    async def _fetch(self, username: str) -> ProfileStats:
        self.calls.append(username)
        if self.tracker:
            self.tracker.enter()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.results.get(username, 10)
            if isinstance(result, BaseException):
                raise result
            return ProfileStats(platform=self.platform, username=username, score=result)
        finally:
            if self.tracker:
                self.tracker.exit()


def make_users(count: int, platforms: tuple[str, ...] = ("leetcode", "github")) -> list[RosterUser]:
    return [
        RosterUser(
            user_id=f"u{i}",
            name=f"User {i}",
            platform_usernames={platform: f"{platform}-user{i}" for platform in platforms},
        )
        for i in range(1, count + 1)
    ]
