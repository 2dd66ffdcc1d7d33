from datetime import date, timedelta
from pathlib import Path
from typing import AsyncGenerator, Dict, Iterable, List

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from app.api.error_handlers import register_exception_handlers
from app.api.routes import bonds, health, markets
from app.config import Settings
from app.domain.errors import ProviderError
from app.domain.models import LookbackPeriod, PricePoint
from app.domain.services.config_engine import ConfigEngine
from app.services.metrics_service import MetricsService

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def daily_points(prices: Iterable[float], start: date = date(2024, 1, 1)) -> List[PricePoint]:
    return [PricePoint(date=start + timedelta(days=i), price=p) for i, p in enumerate(prices)]


class FakePriceProvider:
    """In-memory provider; records every request"""

    def __init__(self, series: Dict[str, List[PricePoint]], failing: Iterable[str] = ()):
        self.series = series
        self.failing = set(failing)
        self.calls: List[tuple] = []

    async def get_price_series(self, symbol: str, period: LookbackPeriod) -> List[PricePoint]:
        self.calls.append((symbol, LookbackPeriod(period)))
        if symbol in self.failing:
            raise ProviderError(f"Failed to fetch {symbol}: upstream timeout", symbol=symbol)
        if symbol not in self.series:
            raise ProviderError(f"Unknown symbol: {symbol}", symbol=symbol)
        return list(self.series[symbol])


@pytest.fixture
def make_points():
    return daily_points


@pytest.fixture(scope="session")
def config_engine() -> ConfigEngine:
    engine = ConfigEngine(CONFIG_DIR)
    engine.load_all()
    return engine


@pytest.fixture
def us_profile(config_engine):
    return config_engine.get_market("us")


@pytest.fixture
def a_share_profile(config_engine):
    return config_engine.get_market("a_share")


@pytest.fixture
def market_series() -> Dict[str, List[PricePoint]]:
    n = 60
    return {
        "^GSPC": daily_points([4000 + 10 * i + (25 if i % 3 == 0 else 0) for i in range(n)]),
        "000001.SS": daily_points([3000 + i + (40 if i % 2 else -40) for i in range(n)]),
        "GC=F": daily_points([2000 + 2 * i for i in range(n)]),
        "^TNX": daily_points([4.0 + 0.01 * i + (0.05 if i % 4 == 0 else 0) for i in range(n)]),
        "LQD": daily_points([110 - 0.05 * i for i in range(n)]),
    }


@pytest.fixture
def fake_provider(market_series) -> FakePriceProvider:
    return FakePriceProvider(market_series)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(MARKET_DATA_PROVIDER="yfinance", HISTORY_TAIL=30)


@pytest.fixture
def metrics_service(fake_provider, config_engine, test_settings) -> MetricsService:
    return MetricsService(fake_provider, config_engine, test_settings)


@pytest.fixture()
async def app(metrics_service) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(health.router, tags=["Health"])
    app.include_router(markets.router, prefix="/api/v1/markets", tags=["Markets"])
    app.include_router(bonds.router, prefix="/api/v1/bonds", tags=["Bonds"])
    app.state.metrics_service = metrics_service
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
