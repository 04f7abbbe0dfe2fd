"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "projectify"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Accounts registering with one of these emails get the admin role
    admin_emails: str = ""

    # SMTP (notification emails)
    smtp_server: Optional[str] = None
    smtp_port: int = 587
    smtp_email: Optional[str] = None
    smtp_password: Optional[str] = None
    mail_from_name: str = "Projectify"

    # Notification queue capacity (events beyond this are dropped)
    notification_queue_size: int = 100

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    # App
    cors_origins: List[str] = ["*"]
    debug: bool = False

    @property
    def admin_email_set(self) -> set:
        """Lower-cased admin emails parsed from the comma-separated setting."""
        return {e.strip().lower() for e in self.admin_emails.split(",") if e.strip()}

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_server and self.smtp_email and self.smtp_password)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
