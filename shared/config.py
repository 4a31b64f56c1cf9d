"""
Centralized configuration for ColdWater.

All settings are loaded from environment variables with sensible defaults.
Integration settings are namespaced (e.g., SUPABASE_*, GOOGLE_*, APPLE_*).
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ColdWater"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "WARNING"

    # Supabase (identity backend and preference mirror)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Google Sign-In
    google_client_secrets_path: str = ""
    google_oauth_scopes: list[str] = [
        "openid",
        "https://www.googleapis.com/auth/userinfo.email",
    ]

    # Sign in with Apple
    apple_client_id: Optional[str] = None

    # Local persistence
    local_storage_dir: str = ".coldwater"
    preferences_storage_key: str = "user_preferences"
    preferences_save_delay: float = 2.0  # seconds

    # Remote preference mirror
    enable_remote_sync: bool = False
    preferences_table: str = "user_preferences"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
