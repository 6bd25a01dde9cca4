from .controller import SyncJobController  # noqa: F401
from .throttle import PlatformThrottle  # noqa: F401
from .worker_pool import SyncWorkerPool  # noqa: F401
