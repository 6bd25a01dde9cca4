"""
Platform adapters for the profile sync feature.
"""

from .base import AdapterError, AdapterRejectedError, HttpProfileAdapter, ProfileAdapter  # noqa: F401
from .registry import (  # noqa: F401
    UNSUPPORTED_PLATFORMS,
    AdapterRegistry,
    UnsupportedPlatformError,
    build_default_registry,
)
