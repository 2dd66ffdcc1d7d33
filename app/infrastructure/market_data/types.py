"""
Price series provider protocol for type hints.
"""

from __future__ import annotations

from typing import List, Protocol

from app.domain.models import LookbackPeriod, PricePoint


class PriceSeriesProvider(Protocol):
    async def get_price_series(self, symbol: str, period: LookbackPeriod) -> List[PricePoint]:
        """
        Daily closes for ``symbol`` over ``period``, oldest first.

        Raises ProviderError on network failure, unknown symbol,
        or an empty/malformed payload.
        """
        ...
