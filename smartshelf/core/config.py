"""Application configuration settings."""

import secrets
import typing as t

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "SmartShelf"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./smartshelf.db"

    # Authentication (tokens are issued by the external auth service)
    jwt_secret: str = secrets.token_urlsafe(32)
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = "authenticated"

    # Notifications
    reminder_lead_days: int = 3  # Remind this many days before expiry
    expired_alert_first_delay_seconds: int = 60
    expired_alert_interval_hours: int = 24
    notifications_auto_grant: bool = True
    notification_channel_required: bool = True
    notification_channel_name: str = "default"

    # Expiry sweep
    check_expiration_interval_hours: int = 24

    # CORS
    cors_origins: t.List[str] = ["*"]

    # Email delivery of notifications (optional)
    smtp_enabled: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from_email: str = "smartshelf@localhost"


SETTINGS = Settings()
