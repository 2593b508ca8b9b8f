"""Application settings"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Environment-driven settings"""

    # Database
    database_url: str = "sqlite:///./atelier.db"

    # WooCommerce REST API
    woocommerce_url: str = "https://maisoncleo.com"
    woocommerce_consumer_key: Optional[str] = None
    woocommerce_consumer_secret: Optional[str] = None
    woocommerce_api_version: str = "wc/v3"
    woocommerce_timeout: int = 30

    # Order synchronization
    sync_page_size: int = 100
    sync_lookback_ids: int = 0  # 0 = pure high-water mark
    sync_cleanup_final_orders: bool = False
    sync_fetch_product_details: bool = False
    sync_report_dir: Optional[str] = None

    # Daily sync job
    daily_sync_enabled: bool = False
    daily_sync_hour: int = 6
    daily_sync_minute: int = 0

    # HTTP
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def woocommerce_configured(self) -> bool:
        """WooCommerce credentials present"""
        return bool(self.woocommerce_consumer_key and self.woocommerce_consumer_secret)


# Global settings instance
settings = Settings()
