"""
Profile sync API response models.
Serialized with camelCase field names.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from codesync.features.profile_sync.domain.models import ProfileIssue, SyncJobSnapshot


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileIssueResponse(CamelModel):
    user_id: str
    user_name: str
    platform: str
    platform_username: str
    detail: str
    timestamp: datetime

    @classmethod
    def from_issue(cls, issue: ProfileIssue) -> "ProfileIssueResponse":
        return cls(
            user_id=issue.user_id,
            user_name=issue.user_name,
            platform=issue.platform,
            platform_username=issue.platform_username,
            detail=issue.detail,
            timestamp=issue.timestamp,
        )


class SyncStatusResponse(CamelModel):
    """Point-in-time view of a sync job."""

    id: str
    state: str
    trigger: str
    in_progress: bool
    progress_percent: int = Field(..., ge=0, le=100)
    total_users: int
    processed_users: int
    total_profiles: int
    updated_profiles: int
    failed_profiles: int
    rejected_profiles: int
    failed_profiles_list: list[ProfileIssueResponse]
    rejected_profiles_list: list[ProfileIssueResponse]
    profiles_by_platform: dict[str, int]
    failures_by_platform: dict[str, int]
    cancel_requested: bool
    stalled: bool
    error: str | None = None
    elapsed_time: int = Field(..., description="Seconds since the job started")
    start_time: datetime
    last_updated: datetime
    completed_time: datetime | None = None

    @classmethod
    def from_snapshot(cls, snapshot: SyncJobSnapshot) -> "SyncStatusResponse":
        return cls(
            id=snapshot.id,
            state=snapshot.state.value,
            trigger=snapshot.trigger,
            in_progress=not snapshot.is_terminal,
            progress_percent=snapshot.progress_percent,
            total_users=snapshot.total_users,
            processed_users=snapshot.processed_users,
            total_profiles=snapshot.total_profiles,
            updated_profiles=snapshot.updated_profiles,
            failed_profiles=snapshot.failed_profiles,
            rejected_profiles=snapshot.rejected_profiles,
            failed_profiles_list=[
                ProfileIssueResponse.from_issue(issue) for issue in snapshot.failed_profiles_list
            ],
            rejected_profiles_list=[
                ProfileIssueResponse.from_issue(issue) for issue in snapshot.rejected_profiles_list
            ],
            profiles_by_platform=snapshot.profiles_by_platform,
            failures_by_platform=snapshot.failures_by_platform,
            cancel_requested=snapshot.cancel_requested,
            stalled=snapshot.stalled,
            error=snapshot.error,
            elapsed_time=snapshot.elapsed_seconds,
            start_time=snapshot.start_time,
            last_updated=snapshot.last_updated,
            completed_time=snapshot.completed_time,
        )


class SyncStartResponse(CamelModel):
    success: bool
    sync_id: str
    message: str


class SyncCancelResponse(CamelModel):
    success: bool
    message: str
    cancelled: bool


class ActiveSyncResponse(CamelModel):
    active: bool
    sync_id: str | None = None
