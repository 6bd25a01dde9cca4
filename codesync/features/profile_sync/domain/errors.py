"""
Typed rejections raised by the sync engine.

These are admission or lookup conflicts surfaced synchronously to callers;
they never describe the outcome of a single user/platform pair.
"""


class SyncJobError(Exception):
    """Base exception for sync job operations."""

    def __init__(self, message: str, sync_id: str | None = None, operation: str | None = None):
        super().__init__(message)
        self.sync_id = sync_id
        self.operation = operation


class SyncJobAlreadyRunningError(SyncJobError):
    """A sync is already running; only one may run at a time."""

    def __init__(self, active_sync_id: str):
        super().__init__(
            f"Profile sync {active_sync_id} is already running",
            sync_id=active_sync_id,
            operation="start",
        )
        self.active_sync_id = active_sync_id


class SyncJobNotFoundError(SyncJobError):
    """Unknown sync id, or the job was evicted after its retention window."""

    def __init__(self, sync_id: str):
        super().__init__(f"Sync job {sync_id} not found", sync_id=sync_id, operation="lookup")


class SyncJobAlreadyTerminalError(SyncJobError):
    """The job already reached completed, cancelled or failed."""

    def __init__(self, sync_id: str, state: str):
        super().__init__(
            f"Sync job {sync_id} already {state}", sync_id=sync_id, operation="cancel"
        )
        self.state = state


class InvalidSyncTransitionError(SyncJobError):
    """A mutation was attempted on a record that is no longer running."""

    def __init__(self, sync_id: str, state, operation: str):
        state_value = getattr(state, "value", state)
        super().__init__(
            f"Cannot {operation} sync job {sync_id} in state {state_value}",
            sync_id=sync_id,
            operation=operation,
        )
        self.state = state_value
