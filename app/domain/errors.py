"""
Domain Errors
Structured failures surfaced by the metric pipeline
"""

from typing import Optional


class BubbleMonitorError(Exception):
    """Base class for every failure the metric pipeline reports"""

    error_type = "error"


class ProviderError(BubbleMonitorError):
    """Upstream price data could not be fetched or had an unusable shape"""

    error_type = "provider_error"

    def __init__(self, message: str, symbol: Optional[str] = None):
        super().__init__(message)
        self.symbol = symbol


class InsufficientDataError(BubbleMonitorError, ValueError):
    """Fewer observations than a computation needs"""

    error_type = "insufficient_data"


class DegenerateInputError(BubbleMonitorError, ValueError):
    """Statistically undefined result (zero dispersion)"""

    error_type = "degenerate_input"


class MetricValidationError(BubbleMonitorError, ValueError):
    """Caller supplied a missing or non-numeric parameter"""

    error_type = "validation_error"

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter


class UnknownMarketError(BubbleMonitorError, ValueError):
    """Market key has no configured profile"""

    error_type = "unknown_market"

    def __init__(self, key: str):
        super().__init__(f"Market not found: {key}")
        self.key = key
