# src/btcperf/application/performance.py
"""
Performance Calculator - Loan vs. BTC Comparison

Pure functions: the same inputs always give the same PerformanceResult.
Formatting (currency symbols, signs) is left to whoever displays the result.

Files that USE this module:
- btcperf.application.pipeline (computes each item's result)
- tests.test_performance (unit tests)

Files that this module USES:
- btcperf.domain.models (PerformanceResult, RiskLevel)
- btcperf.domain.errors (ComputationError)
"""
from __future__ import annotations

import math
from typing import Optional

from btcperf.domain.errors import ComputationError
from btcperf.domain.models import PerformanceResult, RiskLevel


def _require_finite(name: str, value) -> float:
    if value is None:
        raise ComputationError(f"{name} is missing")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ComputationError(f"{name} is not a number: {value!r}") from e
    if not math.isfinite(number):
        raise ComputationError(f"{name} is not finite: {value!r}")
    return number


def calculate_risk_level(ltv: float, btc_percent_change: float) -> RiskLevel:
    """
    Bucket collateral risk from loan-to-value and the BTC price move.

    HIGH above 80% LTV, MEDIUM above 60%, ELEVATED when BTC fell more than 20%
    since provision, LOW otherwise.
    """
    if ltv > 0.8:
        return RiskLevel.HIGH
    if ltv > 0.6:
        return RiskLevel.MEDIUM
    if btc_percent_change < -20:
        return RiskLevel.ELEVATED
    return RiskLevel.LOW


def calculate_performance(
    principal: float,
    annual_rate_percent: float,
    historical_price: float,
    current_price: float,
    collateral_quantity: Optional[float] = None,
) -> PerformanceResult:
    """
    Compare one year of loan interest against investing the principal in BTC.

    Args:
        principal: Loan amount
        annual_rate_percent: Interest rate in percent (12.5 for 12.5%)
        historical_price: BTC price at provision date, same currency as principal
        current_price: BTC price now, same currency as principal
        collateral_quantity: BTC collateral; enables LTV and risk level when given

    Returns:
        PerformanceResult

    Raises:
        ComputationError: On missing, non-finite or non-positive prices
    """
    principal = _require_finite("principal", principal)
    rate = _require_finite("annual_rate_percent", annual_rate_percent)
    historical = _require_finite("historical_price", historical_price)
    current = _require_finite("current_price", current_price)

    if historical <= 0:
        raise ComputationError(f"historical price must be positive, got {historical}")
    if current <= 0:
        raise ComputationError(f"current price must be positive, got {current}")

    btc_value_change = principal * (current / historical - 1)
    btc_percent_change = (current - historical) / historical * 100
    interest_cost = principal * (rate / 100)
    net_result = btc_value_change - interest_cost

    collateral_value = ltv = risk = None
    if collateral_quantity is not None:
        quantity = _require_finite("collateral_quantity", collateral_quantity)
        if quantity > 0:
            collateral_value = quantity * current
            ltv = principal / collateral_value
            risk = calculate_risk_level(ltv, btc_percent_change)

    return PerformanceResult(
        btc_value_change=btc_value_change,
        btc_percent_change=btc_percent_change,
        interest_cost=interest_cost,
        net_result=net_result,
        outperforming=btc_value_change > interest_cost,
        historical_price=historical,
        current_price=current,
        collateral_value=collateral_value,
        loan_to_value=ltv,
        risk_level=risk,
    )
