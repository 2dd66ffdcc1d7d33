"""
FastAPI Main Application
Equity/gold bubble monitor - stateless metric API
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from app.config import settings
from app.core.logging import setup_logging
from app.api.error_handlers import register_exception_handlers
from app.domain.services.config_engine import ConfigEngine, resolve_config_dir
from app.infrastructure.market_data.provider_factory import get_price_series_provider
from app.services.metrics_service import MetricsService

# Configure logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Loads market profiles and the price provider once per process
    """
    # ===================
    # STARTUP
    # ===================
    logger.info("=" * 60)
    logger.info("🚀 Starting Bubble Monitor")
    logger.info("=" * 60)

    logger.info("⚙️  Step 1/2: Loading market profiles...")
    config_engine = ConfigEngine(resolve_config_dir(settings.CONFIG_DIR))
    config_engine.load_all()
    logger.info(f"✅ Markets: {', '.join(p.key for p in config_engine.markets)}")

    logger.info("🏗️  Step 2/2: Initializing market data provider...")
    provider = get_price_series_provider(settings)
    logger.info(f"✅ Provider: {settings.MARKET_DATA_PROVIDER}")

    app.state.metrics_service = MetricsService(provider, config_engine, settings)

    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info(f"   ✅ API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")

    yield

    # ===================
    # SHUTDOWN
    # ===================
    app.state.metrics_service = None
    logger.info("👋 Bubble Monitor shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Bubble Monitor",
    description="Equity/gold ratio statistics, volatility and bubble index",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "📈 Bubble Monitor",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Import and include routers
from app.api.routes import health, markets, bonds

app.include_router(health.router, tags=["Health"])
app.include_router(markets.router, prefix="/api/v1/markets", tags=["Markets"])
app.include_router(bonds.router, prefix="/api/v1/bonds", tags=["Bonds"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
