"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (local session + order journal)
    database_url: str = "sqlite:///./goldapp.db"

    # Remote backend
    backend_api_base: str = "https://rozgold.in/api"
    http_timeout_seconds: float = 30.0

    # Service
    service_name: str = "goldapp-orders"
    log_level: str = "INFO"

    # Order rules
    metal_type: str = "gold"
    buy_minimum_amount: Decimal = Decimal("50")
    sell_minimum_amount: Decimal = Decimal("100")
    default_payment_mode: str = "Bank Transfer"

    # Degraded-mode fallbacks
    fallback_buy_price: Decimal = Decimal("6100")
    fallback_sell_price: Decimal = Decimal("6000")
    fallback_holding_grams: Decimal = Decimal("0")

    # Live preview
    recalculation_debounce_seconds: float = 0.3

    # Mock payment gateway: offsets (seconds from method selection) of the
    # four processing stages, then settlement
    gateway_stage_offsets: List[float] = [0.0, 0.5, 1.5, 2.5]
    gateway_settle_after_seconds: float = 3.5

    # Post-payment navigation
    redirect_delay_seconds: float = 3.0

    # Settled checkouts stay pollable this long, then are dropped
    checkout_retention_seconds: float = 300.0

    # Transaction history
    transactions_page_size: int = 20


settings = Settings()
