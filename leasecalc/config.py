"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Lease Calculator"
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "standard"
    app_env: str = "development"

    # Calculation defaults
    default_payment_frequency: str = "monthly"
    default_discount_rate: float = 4.0  # Annual %, used for operator NPV

    # Investor validation
    min_investors: int = 3
    investment_tolerance: float = 0.01  # Max gap between contributions and loan

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
