"""Storefront Configuration"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8001
    cors_origins: list[str] = ["http://localhost:5173"]

    # Auth
    jwt_access_secret: str = "dev-access-secret-change-me"
    jwt_refresh_secret: str = "dev-refresh-secret-change-me"
    jwt_access_expire_minutes: int = 15
    jwt_refresh_expire_days: int = 7
    refresh_cookie_name: str = "refreshToken"
    cookie_secure: bool = False

    # Payment gateway
    razorpay_key_id: str = "rzp_test_key"
    razorpay_key_secret: str = "rzp_test_secret"
    razorpay_webhook_secret: Optional[str] = "rzp_test_webhook_secret"
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    gateway_timeout_seconds: float = 30.0
    max_payment_attempts: int = 3

    # Pricing
    currency: str = "INR"
    tax_rate: Decimal = Decimal("0.18")
    tax_after_discount: bool = True
    free_shipping_threshold: Decimal = Decimal("999")
    flat_shipping_charge: Decimal = Decimal("59")

    @property
    def webhooks_enabled(self) -> bool:
        return bool(self.razorpay_webhook_secret)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
