"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Market profiles (markets.yml); defaults to <repo>/config
    CONFIG_DIR: Optional[str] = None

    # ======================
    # Market Data
    # ======================
    MARKET_DATA_PROVIDER: str = "yfinance"
    MARKET_DATA_CACHE_TTL: int = 300
    MARKET_DATA_RETRIES: int = 2
    MARKET_DATA_TIMEOUT: float = 10.0
    YAHOO_CHART_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"

    DEFAULT_PERIOD: str = "5y"
    SECONDARY_PERIOD: str = "1y"

    # ======================
    # Statistics
    # ======================
    TRADING_PERIODS_PER_YEAR: int = 252
    TRAILING_WINDOW: int = 30
    HISTORY_TAIL: int = 365

    # ======================
    # Bond proxies
    # ======================
    TREASURY_SYMBOL: str = "^TNX"
    CORPORATE_BOND_SYMBOL: str = "LQD"
    # spread ~= treasury yield * factor (proxy estimate, not a quoted spread)
    SPREAD_ESTIMATE_FACTOR: float = 0.3
    # No live CN 10Y source; reported with bond_yield_simulated=True
    BOND_YIELD_PLACEHOLDER: float = 2.8

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
