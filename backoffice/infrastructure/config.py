"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Storage
    storage_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "postgresql+asyncpg://backoffice:backoffice_dev_password@db:5432/backoffice"

    # Authentication
    api_key: str = "dev-api-key-change-in-production"

    # Logging
    log_level: str = "INFO"

    # Money
    currency: str = "INR"
    seller_earnings_fee_rate: Decimal = Decimal("0.05")
    marketplace_commission_rate: Decimal = Decimal("0.10")
    hold_duration_days: int = 7

    # Order lifecycle
    status_update_max_retries: int = 3


@lru_cache
def get_settings() -> Settings:
    """Get cached settings loaded from the environment."""
    return Settings()
