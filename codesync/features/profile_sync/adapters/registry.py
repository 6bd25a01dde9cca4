"""
Lookup of profile adapters by platform name.
"""

import httpx

from codesync.config import settings
from codesync.features.profile_sync.adapters.base import AdapterRejectedError, ProfileAdapter
from codesync.features.profile_sync.adapters.codeforces import CodeforcesAdapter
from codesync.features.profile_sync.adapters.geeksforgeeks import GeeksforGeeksAdapter
from codesync.features.profile_sync.adapters.github import GitHubAdapter
from codesync.features.profile_sync.adapters.hackerrank import HackerRankAdapter
from codesync.features.profile_sync.adapters.leetcode import LeetCodeAdapter

# CodeChef profiles are only available as rendered HTML
UNSUPPORTED_PLATFORMS = frozenset({"codechef"})


class UnsupportedPlatformError(AdapterRejectedError):
    """No adapter is registered for the platform."""


class AdapterRegistry:
    def __init__(self, adapters: dict[str, ProfileAdapter] | None = None):
        self._adapters: dict[str, ProfileAdapter] = dict(adapters or {})

    def register(self, platform: str, adapter: ProfileAdapter) -> None:
        self._adapters[platform] = adapter

    def get(self, platform: str) -> ProfileAdapter:
        adapter = self._adapters.get(platform)
        if adapter is None:
            if platform in UNSUPPORTED_PLATFORMS:
                message = f"Platform {platform} has no public profile API"
            else:
                message = f"Platform {platform} is not supported"
            raise UnsupportedPlatformError(message, platform=platform)
        return adapter

    @property
    def platforms(self) -> list[str]:
        return sorted(self._adapters)


def build_default_registry(client: httpx.AsyncClient) -> AdapterRegistry:
    """Register the HTTP adapters for every supported platform on one client."""
    retry = {
        "max_retries": settings.ADAPTER_MAX_RETRIES,
        "backoff_seconds": settings.ADAPTER_BACKOFF_SECONDS,
    }
    return AdapterRegistry(
        {
            "leetcode": LeetCodeAdapter(client, **retry),
            "codeforces": CodeforcesAdapter(client, **retry),
            "geeksforgeeks": GeeksforGeeksAdapter(client, **retry),
            "hackerrank": HackerRankAdapter(client, **retry),
            "github": GitHubAdapter(client, access_token=settings.GITHUB_ACCESS_TOKEN, **retry),
        }
    )
