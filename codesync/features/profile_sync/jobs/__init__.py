from .scheduled_sync_job import (  # noqa: F401
    next_run_after,
    run_profile_sync,
    run_profile_sync_scheduler,
    run_scheduled_sync,
    start_profile_sync_scheduler,
)
from .sweep_job import start_sync_job_sweeper  # noqa: F401
