"""
Configuration settings for the CarHub workshop manager.
Uses Pydantic for type-safe configuration management.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "CarHub Workshop Manager"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://carhub:carhub@db:5432/carhub"

    # Security
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Initial admin account, created on startup when missing
    admin_username: str = "admin"
    admin_password: str = "admin123"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # API
    api_prefix: str = "/api"

    # Business clock: the workshop runs on a fixed UTC-3 offset
    timezone_offset_hours: int = -3

    # Web Push
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_email: str = "mailto:admin@carhub.com"

    # Reminder polling
    reminders_enabled: bool = True
    reminder_poll_seconds: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
