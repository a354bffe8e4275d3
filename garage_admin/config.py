"""
Configuration settings for Garage Admin.
Uses Pydantic for type-safe configuration management.
"""
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Garage Admin"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://garage_user:garage_pass@db:5432/garage_db"

    # Security (tokens are issued by the identity provider with this shared secret)
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # API
    api_v1_prefix: str = "/api/v1"

    # Roles
    default_role: str = "secretary"
    profile_fallback_role: Optional[str] = None

    # Timeouts (seconds)
    profile_fetch_timeout: float = 5.0
    query_timeout: float = 10.0

    # Money
    vat_rate: Decimal = Decimal("0.24")
    high_value_threshold: Decimal = Decimal("500.00")

    # Lists
    default_page_size: int = 50
    recent_customer_days: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
