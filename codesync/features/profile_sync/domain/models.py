"""
Domain models for the profile sync feature.

SyncJobRecord is the single piece of shared mutable state of a running sync.
Its mutating methods assume the caller holds ``record.lock``; in practice
they are only ever invoked through ``SyncJobStore.mutate`` which takes the
lock for them.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .errors import InvalidSyncTransitionError


def utcnow() -> datetime:
    return datetime.now(UTC)


class SyncJobState(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SyncJobState.RUNNING


@dataclass(slots=True, frozen=True)
class RosterUser:
    """One entry of the user roster captured at job start."""

    user_id: str
    name: str
    platform_usernames: dict[str, str]
    email: str | None = None


@dataclass(slots=True)
class ProfileStats:
    """Normalized statistics returned by a platform adapter."""

    platform: str
    username: str
    score: int = 0
    problems_solved: int = 0
    rating: int = 0
    rank: str = "unrated"
    details: dict[str, Any] = field(default_factory=dict)
    fetched_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True, frozen=True)
class ProfileUpdated:
    stats: ProfileStats


@dataclass(slots=True, frozen=True)
class ProfileFailed:
    detail: str


@dataclass(slots=True, frozen=True)
class ProfileRejected:
    reason: str


ProfileSyncOutcome = ProfileUpdated | ProfileFailed | ProfileRejected


@dataclass(slots=True, frozen=True)
class ProfileIssue:
    """A failed or rejected user/platform pair, as listed on the job."""

    user_id: str
    user_name: str
    platform: str
    platform_username: str
    detail: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "platform": self.platform,
            "platform_username": self.platform_username,
            "detail": self.detail,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(slots=True, frozen=True)
class SyncJobSnapshot:
    """Immutable copy of a job record handed to pollers."""

    id: str
    trigger: str
    state: SyncJobState
    total_users: int
    processed_users: int
    progress_percent: int
    total_profiles: int
    updated_profiles: int
    failed_profiles: int
    rejected_profiles: int
    start_time: datetime
    last_updated: datetime
    completed_time: datetime | None
    elapsed_seconds: int
    stalled: bool
    cancel_requested: bool
    error: str | None
    failed_profiles_list: tuple[ProfileIssue, ...]
    rejected_profiles_list: tuple[ProfileIssue, ...]
    profiles_by_platform: dict[str, int]
    failures_by_platform: dict[str, int]

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def summary(self) -> dict[str, Any]:
        """Flat counters for logging."""
        return {
            "sync_id": self.id,
            "trigger": self.trigger,
            "state": self.state.value,
            "total_users": self.total_users,
            "processed_users": self.processed_users,
            "total_profiles": self.total_profiles,
            "updated_profiles": self.updated_profiles,
            "failed_profiles": self.failed_profiles,
            "rejected_profiles": self.rejected_profiles,
            "elapsed_seconds": self.elapsed_seconds,
            "error": self.error,
        }


@dataclass(slots=True)
class SyncJobRecord:
    """Mutable state of one sync job, guarded by ``lock``."""

    id: str
    trigger: str = "manual"
    state: SyncJobState = SyncJobState.RUNNING
    total_users: int = 0
    processed_users: int = 0
    total_profiles: int = 0
    updated_profiles: int = 0
    failed_profiles: int = 0
    start_time: datetime = field(default_factory=utcnow)
    last_updated: datetime = field(default_factory=utcnow)
    completed_time: datetime | None = None
    cancel_requested: bool = False
    error: str | None = None
    failed_profiles_list: list[ProfileIssue] = field(default_factory=list)
    rejected_profiles_list: list[ProfileIssue] = field(default_factory=list)
    profiles_by_platform: dict[str, int] = field(default_factory=dict)
    failures_by_platform: dict[str, int] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def rejected_profiles(self) -> int:
        return len(self.rejected_profiles_list)

    @property
    def progress_percent(self) -> int:
        if self.total_users == 0:
            return 0
        return round(100 * self.processed_users / self.total_users)

    def _touch(self) -> None:
        self.last_updated = utcnow()

    def _ensure_running(self, operation: str) -> None:
        if self.state.is_terminal:
            raise InvalidSyncTransitionError(self.id, self.state, operation)

    def set_roster_size(self, total_users: int) -> None:
        self._ensure_running("set_roster_size")
        if total_users < 0 or total_users < self.processed_users:
            raise ValueError(f"Invalid roster size {total_users} for sync {self.id}")
        self.total_users = total_users
        self._touch()

    def request_cancel(self) -> bool:
        """Flag the job for cooperative cancellation. Returns False if already flagged."""
        self._ensure_running("cancel")
        if self.cancel_requested:
            return False
        self.cancel_requested = True
        self._touch()
        return True

    def record_outcome(
        self,
        user: RosterUser,
        platform: str,
        platform_username: str,
        outcome: ProfileSyncOutcome,
    ) -> None:
        """Account for one platform attempt of one user."""
        self._ensure_running("record_outcome")
        self.total_profiles += 1

        if isinstance(outcome, ProfileUpdated):
            self.updated_profiles += 1
            self.profiles_by_platform[platform] = self.profiles_by_platform.get(platform, 0) + 1
        elif isinstance(outcome, ProfileFailed):
            self.failed_profiles += 1
            self.failures_by_platform[platform] = self.failures_by_platform.get(platform, 0) + 1
            self.failed_profiles_list.append(
                ProfileIssue(
                    user_id=user.user_id,
                    user_name=user.name,
                    platform=platform,
                    platform_username=platform_username,
                    detail=outcome.detail,
                    timestamp=utcnow(),
                )
            )
        elif isinstance(outcome, ProfileRejected):
            self.rejected_profiles_list.append(
                ProfileIssue(
                    user_id=user.user_id,
                    user_name=user.name,
                    platform=platform,
                    platform_username=platform_username,
                    detail=outcome.reason,
                    timestamp=utcnow(),
                )
            )
        else:
            raise TypeError(f"Unknown profile sync outcome: {outcome!r}")

        self._touch()

    def mark_user_processed(self) -> int:
        self._ensure_running("mark_user_processed")
        if self.processed_users >= self.total_users:
            raise ValueError(
                f"Sync {self.id} cannot process more than {self.total_users} users"
            )
        self.processed_users += 1
        self._touch()
        return self.processed_users

    def finish(self, state: SyncJobState, error: str | None = None) -> None:
        """Move to a terminal state. Allowed exactly once."""
        if not state.is_terminal:
            raise ValueError(f"{state.value} is not a terminal state")
        self._ensure_running(f"finish:{state.value}")
        self.state = state
        self.error = error
        self.completed_time = utcnow()
        self.last_updated = self.completed_time

    def snapshot(self, stall_after_seconds: float | None = None) -> SyncJobSnapshot:
        now = utcnow()
        end = self.completed_time or now
        stalled = (
            stall_after_seconds is not None
            and self.state is SyncJobState.RUNNING
            and (now - self.last_updated).total_seconds() > stall_after_seconds
        )
        return SyncJobSnapshot(
            id=self.id,
            trigger=self.trigger,
            state=self.state,
            total_users=self.total_users,
            processed_users=self.processed_users,
            progress_percent=self.progress_percent,
            total_profiles=self.total_profiles,
            updated_profiles=self.updated_profiles,
            failed_profiles=self.failed_profiles,
            rejected_profiles=self.rejected_profiles,
            start_time=self.start_time,
            last_updated=self.last_updated,
            completed_time=self.completed_time,
            elapsed_seconds=int((end - self.start_time).total_seconds()),
            stalled=stalled,
            cancel_requested=self.cancel_requested,
            error=self.error,
            failed_profiles_list=tuple(self.failed_profiles_list),
            rejected_profiles_list=tuple(self.rejected_profiles_list),
            profiles_by_platform=dict(self.profiles_by_platform),
            failures_by_platform=dict(self.failures_by_platform),
        )
