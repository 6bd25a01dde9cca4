from .router import get_sync_controller, router  # noqa: F401
