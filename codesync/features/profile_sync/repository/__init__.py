from .job_store import SyncJobStore  # noqa: F401
from .profile_repository import PostgresProfileStore  # noqa: F401
from .roster_repository import PostgresRosterProvider  # noqa: F401
