"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "job_portal"

    # JWT Auth - access and refresh tokens are signed with different secrets
    access_token_secret: str = ""
    access_token_expire_minutes: int = 15
    refresh_token_secret: str = ""
    refresh_token_expire_days: int = 10
    jwt_algorithm: str = "HS256"

    # Password reset
    reset_token_expire_minutes: int = 10
    frontend_url: str = "http://localhost:5173"

    # SMTP (empty host = dev mode, emails are logged instead of sent)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = ""
    email_from_name: str = "Workify Support"

    # Auth cookies
    cookie_secure: bool = True
    cookie_samesite: str = "none"
    cookie_max_age_seconds: int = 24 * 60 * 60

    # Uploaded files (avatars, cover images, resumes, logos)
    upload_dir: str = "static/uploads"
    upload_url_prefix: str = "/static/uploads"

    # App
    cors_origins: str = "http://localhost:5173,http://localhost:4000"
    log_level: str = "INFO"
    log_dir: str = "logs"

    @property
    def cors_origin_list(self) -> List[str]:
        """Split the comma-separated CORS allowlist."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
