"""
Centralized application configuration

Static settings come from the environment (.env). Business configuration
that admins change at runtime (commission rates, payout thresholds) lives
in the database and is read through ConfigRepository; the values here are
only the fallbacks used when those rows are absent.
"""
from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settlement engine settings"""

    # API Settings
    API_TITLE: str = "Settlement API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Multi-vendor order settlement and seller payouts"
    LOG_LEVEL: str = "INFO"

    # Database (postgresql+psycopg2://... in production)
    DATABASE_URL: str = "sqlite:///./settlement.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Commission / fee fallbacks
    DEFAULT_COMMISSION_RATE: Decimal = Decimal("15.00")
    PROCESSING_FEE_PERCENT: Decimal = Decimal("2.9")
    PROCESSING_FEE_FIXED: int = 30  # minor units

    # Payout fallbacks (minor units)
    DEFAULT_HOLDING_PERIOD_DAYS: int = 7
    DEFAULT_MINIMUM_PAYOUT_AMOUNT: int = 2000
    DEFAULT_MAXIMUM_PAYOUT_AMOUNT: int = 10000000
    DEFAULT_AUTO_APPROVE_THRESHOLD: int = 50000
    DEFAULT_PAYOUT_METHOD: str = "auto_bank_transfer"

    # External collaborators
    CATALOG_API_URL: Optional[str] = None
    CATALOG_API_TOKEN: Optional[str] = None
    CATALOG_TIMEOUT_SECONDS: float = 10.0

    # Protects the batch trigger endpoint; unset means unprotected (dev only)
    SETTLEMENT_API_KEY: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
