"""
Yahoo chart API provider (httpx, no yfinance).

Parses the v8 chart payload:
    chart.result[0].timestamp            epoch seconds
    chart.result[0].indicators.quote[0].close
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from app.domain.errors import ProviderError
from app.domain.models import LookbackPeriod, PricePoint

logger = logging.getLogger(__name__)

_DEFAULT_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
_HEADERS = {
    "User-Agent": "Mozilla/5.0",
    "Accept": "application/json",
}


def parse_chart_payload(symbol: str, payload: Any) -> List[PricePoint]:
    """
    Convert a chart payload into date-ascending PricePoints.

    Timestamps are truncated to their UTC calendar date. Null closes are
    skipped; a payload without a usable result raises ProviderError.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("chart"), dict):
        raise ProviderError(f"Invalid data structure for {symbol}", symbol=symbol)

    chart = payload["chart"]
    if chart.get("error"):
        error = chart["error"]
        detail = error.get("description") if isinstance(error, dict) else error
        raise ProviderError(f"Provider rejected {symbol}: {detail}", symbol=symbol)

    results = chart.get("result") or []
    if not results or not isinstance(results[0], dict):
        raise ProviderError(f"Invalid data structure for {symbol}", symbol=symbol)

    result = results[0]
    timestamps = result.get("timestamp")
    try:
        closes = result["indicators"]["quote"][0]["close"]
    except (KeyError, IndexError, TypeError):
        raise ProviderError(f"Missing close prices for {symbol}", symbol=symbol) from None

    if not timestamps or not closes:
        raise ProviderError(f"No price data for {symbol}", symbol=symbol)
    if len(timestamps) != len(closes):
        raise ProviderError(
            f"Timestamp/close length mismatch for {symbol}: {len(timestamps)} vs {len(closes)}",
            symbol=symbol,
        )

    points: Dict = {}
    for ts, close in zip(timestamps, closes):
        if ts is None or close is None:
            continue
        try:
            value = float(close)
            day = datetime.fromtimestamp(int(ts), tz=timezone.utc).date()
        except (TypeError, ValueError, OverflowError, OSError):
            raise ProviderError(f"Malformed observation for {symbol}: {ts}={close!r}", symbol=symbol) from None
        if not math.isfinite(value):
            continue
        points[day] = value

    if not points:
        raise ProviderError(f"No usable closes for {symbol}", symbol=symbol)

    return [PricePoint(date=d, price=p) for d, p in sorted(points.items())]


class YahooChartProvider:
    """
    Yahoo chart endpoint provider
    Retries with backoff; short TTL cache of parsed series
    """

    def __init__(
        self,
        chart_url: str = _DEFAULT_CHART_URL,
        timeout: float = 10.0,
        retries: int = 2,
        cache_ttl_seconds: int = 300,
    ):
        self.chart_url = chart_url
        self.timeout = timeout
        self.retries = retries
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cache: Dict[str, tuple[float, List[PricePoint]]] = {}

    async def _request_json(self, url: str, params: Optional[dict] = None) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, headers=_HEADERS) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()

    async def _request_with_retry(self, symbol: str, url: str, params: dict) -> Any:
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                return await self._request_json(url, params=params)
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                status = exc.response.status_code
                logger.warning(f"Chart API {status} for {symbol} (attempt {attempt + 1})")
                # 4xx other than rate limiting will not improve on retry
                if 400 <= status < 500 and status != 429:
                    break
            except (httpx.HTTPError, ValueError) as exc:
                last_exc = exc
                logger.warning(f"Chart API request for {symbol} failed (attempt {attempt + 1}): {exc}")
            if attempt < self.retries:
                await asyncio.sleep(0.4 * (2 ** attempt) + random.random() * 0.2)
        raise ProviderError(f"Failed to fetch {symbol}: {last_exc}", symbol=symbol) from last_exc

    async def get_price_series(self, symbol: str, period: LookbackPeriod) -> List[PricePoint]:
        period = LookbackPeriod(period)
        cache_key = f"series:{symbol}:{period.value}"
        cached = self._cache.get(cache_key)
        if cached and time.time() - cached[0] <= self.cache_ttl_seconds:
            return cached[1]

        url = self.chart_url.format(symbol=symbol)
        payload = await self._request_with_retry(
            symbol, url, params={"range": period.value, "interval": "1d"}
        )
        points = parse_chart_payload(symbol, payload)
        logger.info(f"Fetched {len(points)} closes for {symbol} ({period.value})")

        self._cache[cache_key] = (time.time(), points)
        return points
