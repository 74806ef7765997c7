"""Storefront Client Configuration"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client settings loaded from environment (STOREFRONT_ prefix)"""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: str = "http://localhost:8001"
    request_timeout: float = 30.0
    login_path: str = "/api/auth/login"
    refresh_path: str = "/api/auth/refresh-token"
    logout_path: str = "/api/auth/logout"


@lru_cache()
def get_client_settings() -> ClientSettings:
    """Get cached client settings instance"""
    return ClientSettings()
