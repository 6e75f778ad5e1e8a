"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from fastapi import Request
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "internhub"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    # Mail relay (empty host disables email delivery)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from: str = "no-reply@internhub.local"
    # Where contact form messages go (empty means email_from)
    contact_email: str = ""

    # Real-time push relay (empty disables push)
    push_relay_url: str = ""

    # Timeout applied to SMTP and push relay calls
    notification_timeout_seconds: float = 10.0

    # Frontend origin, used for CORS and links in emails
    frontend_url: str = "http://localhost:3000"

    # App
    log_level: str = "INFO"
    debug: bool = False

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """FastAPI dependency - the settings the running app was built with."""
    return request.app.state.settings
