# src/btcperf/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Loan positions handed to the pipeline
- Per-position processing state
- Performance results and portfolio totals

Files that USE this module:
- btcperf.application.* (all services use domain models)
- btcperf.adapters.* (adapters create and consume domain models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, replace  # Data classes and copy-with-changes helper
from datetime import date  # Calendar dates for loan provision
from enum import Enum  # Enumerations for item state and risk level
from typing import Optional  # Type hints for optional values


@dataclass(frozen=True)
class Position:
    """
    One collateralised loan subject to analysis.

    Only ``id`` is guaranteed. Any other field may be None when the source
    could not read it; the pipeline rejects such positions as failed.

    Attributes:
        id: Opaque stable identifier
        currency: ISO-4217 code of the loan (e.g. "EUR")
        principal: Loan amount in ``currency``
        annual_rate_percent: Annual interest rate, 12.5 means 12.5%
        reference_date: Loan provision date
        collateral_quantity: BTC locked as collateral
    """
    id: str
    currency: Optional[str] = None
    principal: Optional[float] = None
    annual_rate_percent: Optional[float] = None
    reference_date: Optional[date] = None
    collateral_quantity: Optional[float] = None


class ItemState(str, Enum):
    QUEUED = "queued"
    LOADING = "loading"
    AWAITING_RETRY = "awaiting_retry"
    RESULT = "result"
    FAILED = "failed"


class RiskLevel(str, Enum):
    LOW = "LOW"
    ELEVATED = "ELEVATED"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class PerformanceResult:
    """
    Outcome of comparing a loan against buying BTC with the same money.

    Attributes:
        btc_value_change: Gain/loss of principal invested in BTC at provision
        btc_percent_change: BTC price change since provision, in percent
        interest_cost: One year of loan interest
        net_result: btc_value_change - interest_cost (sign matters)
        outperforming: True when the BTC gain exceeds the interest cost
        historical_price: BTC price at provision date
        current_price: BTC price now
        collateral_value: Current value of the collateral
        loan_to_value: principal / collateral_value
        risk_level: Collateral risk bucket
    """
    btc_value_change: float
    btc_percent_change: float
    interest_cost: float
    net_result: float
    outperforming: bool
    historical_price: float
    current_price: float
    collateral_value: Optional[float] = None
    loan_to_value: Optional[float] = None
    risk_level: Optional[RiskLevel] = None


@dataclass(frozen=True)
class Item:
    """
    Published processing state of one position.

    Items are replaced, never mutated, so readers always see a state together
    with its matching result or error.
    """
    position: Position
    state: ItemState = ItemState.QUEUED
    result: Optional[PerformanceResult] = None
    error: Optional[str] = None

    @property
    def id(self) -> str:
        return self.position.id

    @property
    def is_terminal(self) -> bool:
        return self.state in (ItemState.RESULT, ItemState.FAILED)

    def with_state(
        self,
        state: ItemState,
        result: Optional[PerformanceResult] = None,
        error: Optional[str] = None,
    ) -> Item:
        return replace(self, state=state, result=result, error=error)


@dataclass(frozen=True)
class PortfolioTotals:
    """
    Portfolio-level summary folded from item states.

    Attributes:
        total_net: Sum of net_result over items with a result
        outperforming_count: Results with outperforming=True
        analyzed_count: Items in Result or Failed
        total_position_value: Sum of principal over items with a result
        total_positions: Items not excluded from analysis
    """
    total_net: float = 0.0
    outperforming_count: int = 0
    analyzed_count: int = 0
    total_position_value: float = 0.0
    total_positions: int = 0

    @property
    def is_complete(self) -> bool:
        return self.total_positions > 0 and self.analyzed_count >= self.total_positions
