"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./fiado_ledger.db"

    # Service
    service_name: str = "fiado-ledger"
    log_level: str = "INFO"
    shop_name: str = "Kombat Moto Peças"

    # Credit sales (fiado)
    default_fine_rate: Decimal = Decimal("2")  # Flat penalty, percent of original amount
    default_interest_rate: Decimal = Decimal("1")  # Percent per 30-day month, pro-rated daily
    default_term_days: int = 30
    reminder_days_before: int = 2

    # Workshop
    mechanic_labor_share: Decimal = Decimal("0.5")


settings = Settings()
