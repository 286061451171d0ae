"""
Application Layer - Use Cases and Services

This package contains the price cache, rate-limit coordinator, performance
calculator, portfolio aggregator and the fetch pipeline that ties them together.
"""

from btcperf.application.context import AnalysisContext
from btcperf.application.performance import calculate_performance, calculate_risk_level
from btcperf.application.pipeline import FetchPipeline, validate_position
from btcperf.application.portfolio import aggregate
from btcperf.application.price_cache import PriceCache
from btcperf.application.rate_limit import RateLimitCoordinator, RateLimitStatus

__all__ = [
    "AnalysisContext",
    "FetchPipeline",
    "PriceCache",
    "RateLimitCoordinator",
    "RateLimitStatus",
    "aggregate",
    "calculate_performance",
    "calculate_risk_level",
    "validate_position",
]
