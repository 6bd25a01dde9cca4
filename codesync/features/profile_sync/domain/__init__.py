"""
Domain subpackage for the profile sync feature.
"""

from .errors import (
    InvalidSyncTransitionError,
    SyncJobAlreadyRunningError,
    SyncJobAlreadyTerminalError,
    SyncJobError,
    SyncJobNotFoundError,
)
from .models import (
    ProfileFailed,
    ProfileIssue,
    ProfileRejected,
    ProfileStats,
    ProfileSyncOutcome,
    ProfileUpdated,
    RosterUser,
    SyncJobRecord,
    SyncJobSnapshot,
    SyncJobState,
)

__all__ = [
    "InvalidSyncTransitionError",
    "ProfileFailed",
    "ProfileIssue",
    "ProfileRejected",
    "ProfileStats",
    "ProfileSyncOutcome",
    "ProfileUpdated",
    "RosterUser",
    "SyncJobAlreadyRunningError",
    "SyncJobAlreadyTerminalError",
    "SyncJobError",
    "SyncJobNotFoundError",
    "SyncJobRecord",
    "SyncJobSnapshot",
    "SyncJobState",
]
