"""Runtime settings for the fulfillment engine.

Values come from ``FULFILLMENT_*`` environment variables or a local ``.env``
file. Defaults are safe for tests and local development.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FulfillmentSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FULFILLMENT_",
        env_file=".env",
        extra="ignore",
    )

    environment: str = "development"
    log_level: str | None = None
    log_dir: str | None = None

    # Rate shopping
    rate_cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    carrier_timeout_seconds: float = Field(default=10.0, gt=0)
    max_carrier_concurrency: int = Field(default=8, ge=1)
    default_currency: str = "USD"

    # Batch processing
    batch_max_workers: int = Field(default=8, ge=1)

    # Metrics
    on_time_threshold_minutes: int = Field(default=1440, gt=0)


@lru_cache
def get_settings() -> FulfillmentSettings:
    return FulfillmentSettings()
