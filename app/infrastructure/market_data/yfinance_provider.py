"""
YFinance Market Data Provider
Async-safe Yahoo Finance daily history for indices, futures and yields
"""

import asyncio
import logging
import math
import random
import time
from typing import Dict, List, Optional

import pandas as pd
import yfinance as yf

from app.domain.errors import ProviderError
from app.domain.models import LookbackPeriod, PricePoint

logger = logging.getLogger(__name__)


def frame_to_price_points(symbol: str, hist: pd.DataFrame) -> List[PricePoint]:
    """
    Convert a yfinance history frame into date-ascending PricePoints.

    yfinance stamps daily bars at local midnight of the exchange, so the
    index's own calendar date is the trading date. Missing closes are
    dropped; a frame with no usable closes is a provider failure.
    """
    if hist is None or hist.empty or "Close" not in hist:
        raise ProviderError(f"No price data for {symbol}", symbol=symbol)

    closes = hist["Close"].dropna()
    points: Dict = {}
    for ts, close in closes.items():
        value = float(close)
        if not math.isfinite(value):
            continue
        points[pd.Timestamp(ts).date()] = value

    if not points:
        raise ProviderError(f"No usable closes for {symbol}", symbol=symbol)

    return [PricePoint(date=d, price=p) for d, p in sorted(points.items())]


class YFinanceProvider:
    """
    Yahoo Finance data provider
    Async-safe via thread offloading
    """

    def __init__(
        self,
        cache_ttl_seconds: int = 300,
        retries: int = 2,
    ):
        self.cache_ttl_seconds = cache_ttl_seconds
        self.retries = retries
        self._cache: Dict[str, tuple[float, List[PricePoint]]] = {}

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    async def _history(self, ticker: yf.Ticker, **kwargs) -> pd.DataFrame:
        """
        Async-safe wrapper around yfinance history()
        """
        return await asyncio.to_thread(ticker.history, **kwargs)

    async def _history_with_retry(self, ticker: yf.Ticker, **kwargs) -> pd.DataFrame:
        """
        Retry wrapper around history() to handle transient failures.
        """
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                return await self._history(ticker, **kwargs)
            except Exception as exc:
                last_exc = exc
                logger.warning(f"yfinance history attempt {attempt + 1} failed: {exc}")
                if attempt < self.retries:
                    await asyncio.sleep(0.4 * (2 ** attempt) + random.random() * 0.2)
        raise ProviderError(f"Failed to fetch history: {last_exc}") from last_exc

    def _cache_get(self, key: str) -> Optional[List[PricePoint]]:
        cached = self._cache.get(key)
        if not cached:
            return None
        ts, value = cached
        if time.time() - ts > self.cache_ttl_seconds:
            return None
        return value

    def _cache_set(self, key: str, value: List[PricePoint]) -> None:
        self._cache[key] = (time.time(), value)

    # ------------------------------------------------------------------
    # PRICE SERIES
    # ------------------------------------------------------------------

    async def get_price_series(self, symbol: str, period: LookbackPeriod) -> List[PricePoint]:
        period = LookbackPeriod(period)
        cache_key = f"series:{symbol}:{period.value}"
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached

        ticker = yf.Ticker(symbol)
        try:
            hist = await self._history_with_retry(
                ticker,
                period=period.value,
                interval="1d",
                auto_adjust=False,
            )
        except ProviderError as exc:
            logger.error(f"Error fetching {symbol} ({period.value}): {exc}")
            raise ProviderError(f"Failed to fetch {symbol}: {exc}", symbol=symbol) from exc

        points = frame_to_price_points(symbol, hist)
        logger.info(f"Fetched {len(points)} closes for {symbol} ({period.value})")

        self._cache_set(cache_key, points)
        return points
