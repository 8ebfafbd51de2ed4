"""
Configuration settings for the Car Wash Management System.
Uses Pydantic for type-safe configuration management.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Application
    app_name: str = "Car Wash Management System"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://carwash:carwash@db:5432/carwash"

    # Security
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Seeded on first start when no super admin exists
    first_superadmin_email: str = "superadmin@carwash.com"
    first_superadmin_password: str = "change-me-now"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # API
    api_prefix: str = "/api"

    # Business rules
    advance_payment_limit: float = 2000.0
    default_washer_commission: float = 40.0
    default_company_commission: float = 60.0
    default_estimated_duration: int = 30  # minutes
    low_availability_ratio: float = 0.3


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
