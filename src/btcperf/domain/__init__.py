"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from btcperf.domain.models import (
    Item,
    ItemState,
    PerformanceResult,
    PortfolioTotals,
    Position,
    RiskLevel,
)
from btcperf.domain.errors import (
    ComputationError,
    DomainError,
    TransientThrottle,
    UpstreamError,
    ValidationError,
)

__all__ = [
    "Position",
    "ItemState",
    "Item",
    "PerformanceResult",
    "PortfolioTotals",
    "RiskLevel",
    "DomainError",
    "ValidationError",
    "TransientThrottle",
    "UpstreamError",
    "ComputationError",
]
