"""
Price series provider factory (settings-driven).
"""

from __future__ import annotations

from typing import Optional

from app.config import Settings, settings as app_settings
from app.infrastructure.market_data.types import PriceSeriesProvider
from app.infrastructure.market_data.yahoo_chart_provider import YahooChartProvider
from app.infrastructure.market_data.yfinance_provider import YFinanceProvider


def _build_provider(name: str, config: Settings) -> PriceSeriesProvider:
    name = (name or "").lower()
    if name == "yahoo_chart":
        return YahooChartProvider(
            chart_url=config.YAHOO_CHART_URL,
            timeout=config.MARKET_DATA_TIMEOUT,
            retries=config.MARKET_DATA_RETRIES,
            cache_ttl_seconds=config.MARKET_DATA_CACHE_TTL,
        )
    if name == "yfinance":
        return YFinanceProvider(
            cache_ttl_seconds=config.MARKET_DATA_CACHE_TTL,
            retries=config.MARKET_DATA_RETRIES,
        )
    raise ValueError(f"Unknown market data provider: {name}")


def get_price_series_provider(config: Optional[Settings] = None) -> PriceSeriesProvider:
    config = config or app_settings
    return _build_provider(config.MARKET_DATA_PROVIDER, config)
