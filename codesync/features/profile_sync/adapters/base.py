"""
Base classes for platform profile adapters.

An adapter turns a platform username into ProfileStats. It reports a
permanent, input-level problem (empty username, no such user) by raising
AdapterRejectedError; any other exception is a transient failure.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx

from codesync.features.profile_sync.domain.models import ProfileStats
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class AdapterError(Exception):
    """Transient failure while fetching a platform profile."""

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        username: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.platform = platform
        self.username = username
        self.status_code = status_code


class AdapterRejectedError(AdapterError):
    """The username cannot be synced on this platform."""


class ProfileAdapter(ABC):
    platform: str = ""

    async def fetch(self, username: str) -> ProfileStats:
        """
        Fetch and score a user's profile.

        Raises:
            AdapterRejectedError: Username is empty or unknown to the platform
            AdapterError: Upstream failure
        """
        if username is None or not str(username).strip():
            raise AdapterRejectedError(
                "Empty username", platform=self.platform, username=username
            )
        return await self._fetch(str(username).strip())

    @abstractmethod
    async def _fetch(self, username: str) -> ProfileStats: ...


class HttpProfileAdapter(ProfileAdapter):
    """Adapter backed by a JSON HTTP API, sharing one httpx client."""

    not_found_statuses: tuple[int, ...] = (404,)

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_retries: int = 2,
        backoff_seconds: float = 2.0,
    ):
        self.client = client
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    def _rejected(self, username: str, message: str, status_code: int | None = None):
        return AdapterRejectedError(
            message, platform=self.platform, username=username, status_code=status_code
        )

    def _failed(self, username: str, message: str, status_code: int | None = None):
        return AdapterError(
            message, platform=self.platform, username=username, status_code=status_code
        )

    async def _get_json(
        self,
        url: str,
        username: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        not_found_statuses: tuple[int, ...] | None = None,
    ) -> Any:
        """GET a JSON document, retrying rate limits, 5xx and transport errors."""
        attempts = self.max_retries + 1
        if not_found_statuses is None:
            not_found_statuses = self.not_found_statuses

        for attempt in range(1, attempts + 1):
            try:
                response = await self.client.get(url, params=params, headers=headers)
            except httpx.RequestError as exc:
                if attempt == attempts:
                    raise self._failed(
                        username, f"{self.platform} request failed: {type(exc).__name__}: {exc}"
                    ) from exc

                wait_time = self.backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Platform request error, retrying",
                    platform=self.platform,
                    username=username,
                    attempt=attempt,
                    wait_time=wait_time,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                await asyncio.sleep(wait_time)
                continue

            if response.status_code in RETRY_STATUS_CODES and attempt < attempts:
                wait_time = self.backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Platform transient status",
                    platform=self.platform,
                    username=username,
                    status_code=response.status_code,
                    attempt=attempt,
                    wait_time=wait_time,
                )
                await asyncio.sleep(wait_time)
                continue

            if response.status_code in not_found_statuses:
                raise self._rejected(
                    username,
                    f"User not found on {self.platform}",
                    status_code=response.status_code,
                )

            if response.status_code >= 400:
                raise self._failed(
                    username,
                    f"{self.platform} returned HTTP {response.status_code}",
                    status_code=response.status_code,
                )

            try:
                return response.json()
            except ValueError as exc:
                raise self._failed(
                    username,
                    f"{self.platform} returned invalid JSON",
                    status_code=response.status_code,
                ) from exc

        raise self._failed(username, f"{self.platform} request failed: retries exhausted")
