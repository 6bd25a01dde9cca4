from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

# Minimum spacing between two requests to the same platform, in milliseconds
DEFAULT_PLATFORM_INTERVALS_MS = {
    "github": 1000,
    "leetcode": 2000,
    "codeforces": 5000,
    "codechef": 12000,
    "geeksforgeeks": 2000,
    "hackerrank": 1500,
}


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Database settings
    DATABASE_URL: str | None = None

    # Admin endpoints are guarded by a shared key sent as X-API-Key
    ADMIN_API_KEY: str | None = None

    # Platform credentials
    GITHUB_ACCESS_TOKEN: str | None = None

    # =================================================================
    # SYNC ENGINE SETTINGS
    # =================================================================
    SYNC_MAX_WORKERS: int = 2
    SYNC_JOB_RETENTION_HOURS: float = 24.0
    SYNC_SWEEP_INTERVAL_MINUTES: int = 15
    SYNC_STALL_WARNING_SECONDS: int = 120
    SYNC_SHUTDOWN_TIMEOUT_SECONDS: float = 30.0

    SYNC_SCHEDULE_ENABLED: bool = False
    SYNC_SCHEDULE_HOUR_UTC: int = 8
    SYNC_SCHEDULE_MINUTE_UTC: int = 10

    # =================================================================
    # ADAPTER SETTINGS
    # =================================================================
    ADAPTER_REQUEST_TIMEOUT_SECONDS: float = 15.0
    ADAPTER_CALL_TIMEOUT_SECONDS: float = 120.0
    ADAPTER_MAX_RETRIES: int = 2
    ADAPTER_BACKOFF_SECONDS: float = 2.0
    PLATFORM_MIN_INTERVAL_MS: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_PLATFORM_INTERVALS_MS)
    )
    PLATFORM_DEFAULT_INTERVAL_MS: int = 1000

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            config.update(
                {
                    "min_size": 1,
                    "max_size": 5,
                    "timeout": 15.0,
                }
            )

        return config

    def platform_interval_seconds(self, platform: str) -> float:
        """Minimum spacing between two requests to a platform, in seconds."""
        interval_ms = self.PLATFORM_MIN_INTERVAL_MS.get(
            platform, self.PLATFORM_DEFAULT_INTERVAL_MS
        )
        return max(0, interval_ms) / 1000


settings = Settings()
