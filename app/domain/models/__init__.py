"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    BubbleLevel,
    LookbackPeriod,
    SecondarySignalKind,
    SeverityTag,

    # Entities
    BubbleIndexResult,
    MarketProfile,
    MetricRequest,
    PricePoint,
    RatioObservation,
    RatioSeries,
    RiskAssessment,
    RiskBand,
    ScoreComponents,
    ScoreStep,
    SpreadObservation,
    SpreadStats,
    Statistics,
    VolatilityStats,
)

__all__ = [
    # Enums
    "BubbleLevel",
    "LookbackPeriod",
    "SecondarySignalKind",
    "SeverityTag",

    # Entities
    "BubbleIndexResult",
    "MarketProfile",
    "MetricRequest",
    "PricePoint",
    "RatioObservation",
    "RatioSeries",
    "RiskAssessment",
    "RiskBand",
    "ScoreComponents",
    "ScoreStep",
    "SpreadObservation",
    "SpreadStats",
    "Statistics",
    "VolatilityStats",
]
