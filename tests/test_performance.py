"""
Performance Calculator Tests
"""
import math

import pytest  # Testing framework for writing and running tests

from btcperf.application.performance import calculate_performance, calculate_risk_level
from btcperf.domain.errors import ComputationError
from btcperf.domain.models import RiskLevel


class TestCalculatePerformance:
    def test_outperforming_loan(self):
        result = calculate_performance(10000, 12.5, 60000, 90000, collateral_quantity=0.25)

        assert result.btc_value_change == pytest.approx(5000)
        assert result.btc_percent_change == pytest.approx(50)
        assert result.interest_cost == pytest.approx(1250)
        assert result.net_result == pytest.approx(3750)
        assert result.outperforming is True
        assert result.historical_price == 60000
        assert result.current_price == 90000
        assert result.collateral_value == pytest.approx(22500)
        assert result.loan_to_value == pytest.approx(10000 / 22500)
        assert result.risk_level is RiskLevel.LOW

    def test_underperforming_when_btc_falls(self):
        result = calculate_performance(10000, 10, 60000, 45000)
        assert result.btc_value_change == pytest.approx(-2500)
        assert result.btc_percent_change == pytest.approx(-25)
        assert result.net_result == pytest.approx(-3500)
        assert result.outperforming is False

    def test_equal_gain_and_cost_is_not_outperforming(self):
        # 50% BTC gain on 1000 equals 50% interest
        result = calculate_performance(1000, 50, 40000, 60000)
        assert result.btc_value_change == 500
        assert result.interest_cost == 500
        assert result.net_result == 0
        assert result.outperforming is False

    def test_without_collateral_has_no_risk_fields(self):
        result = calculate_performance(10000, 12.5, 60000, 90000)
        assert result.collateral_value is None
        assert result.loan_to_value is None
        assert result.risk_level is None

    def test_zero_collateral_has_no_risk_fields(self):
        result = calculate_performance(10000, 12.5, 60000, 90000, collateral_quantity=0)
        assert result.loan_to_value is None

    def test_deterministic(self):
        assert calculate_performance(5000, 8, 30000, 40000, 0.3) == calculate_performance(
            5000, 8, 30000, 40000, 0.3
        )

    @pytest.mark.parametrize("historical", [0, -1])
    def test_non_positive_historical_price(self, historical):
        with pytest.raises(ComputationError):
            calculate_performance(10000, 12.5, historical, 90000)

    def test_non_positive_current_price(self):
        with pytest.raises(ComputationError):
            calculate_performance(10000, 12.5, 60000, 0)

    @pytest.mark.parametrize("bad", [None, math.nan, math.inf, "abc"])
    def test_non_finite_inputs(self, bad):
        with pytest.raises(ComputationError):
            calculate_performance(bad, 12.5, 60000, 90000)


class TestRiskLevel:
    @pytest.mark.parametrize(
        "ltv, change, expected",
        [
            (0.85, 10, RiskLevel.HIGH),
            (0.7, 10, RiskLevel.MEDIUM),
            (0.8, 10, RiskLevel.MEDIUM),
            (0.5, -25, RiskLevel.ELEVATED),
            (0.5, -20, RiskLevel.LOW),
            (0.6, 0, RiskLevel.LOW),
            (0.9, -50, RiskLevel.HIGH),
        ],
    )
    def test_buckets(self, ltv, change, expected):
        assert calculate_risk_level(ltv, change) is expected

    def test_falling_btc_raises_risk_through_ltv(self):
        result = calculate_performance(10000, 12.5, 60000, 30000, collateral_quantity=0.4)
        # collateral worth 12000 against a 10000 loan
        assert result.loan_to_value == pytest.approx(10000 / 12000)
        assert result.risk_level is RiskLevel.HIGH
