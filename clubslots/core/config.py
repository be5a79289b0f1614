"""Application configuration from environment variables."""

from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "ClubSlots"
    debug: bool = True
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://clubslots:clubslots@db:5432/clubslots"
    database_echo: bool = False
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Redis (Celery broker)
    redis_url: str = "redis://redis:6379/0"

    # Club-local time: slot labels and blackout dates are interpreted in this zone
    timezone: str = "Europe/Berlin"

    # Reservation holds
    pending_booking_ttl_minutes: int = 20
    cleanup_interval_seconds: int = 300

    # Shared secret for the cron endpoint; empty disables the check
    cron_secret: str = ""

    model_config = {"env_prefix": "CS_", "env_file": ".env", "extra": "ignore"}

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


settings = Settings()
