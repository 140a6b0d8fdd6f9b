"""Storefront Service Configuration"""

from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Telegram Storefront"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Saleor backend
    saleor_api_url: str = "https://demo.saleor.io/graphql/"
    saleor_channel: str = "default-channel"
    saleor_docs_url: str = "https://docs.saleor.io"
    request_timeout: float = 30.0

    # Query page sizes
    stores_page_size: int = 12
    products_page_size: int = 60
    variants_page_size: int = 5

    # Session behaviour
    notification_duration: float = 2.8
    default_currency: str = "USD"
    review_order_label: str = "Review order"
    guest_email_domain: str = "telegram.local"
    session_max_age_hours: int = 24

    # Telegram webhook (scripts/set_webhook.py)
    telegram_bot_token: Optional[str] = None
    remote_path: Optional[str] = None

    @property
    def webhook_url(self) -> Optional[str]:
        """Public webhook URL derived from remote_path"""
        if not self.remote_path:
            return None
        return f"{self.remote_path.rstrip('/')}/telegram"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
