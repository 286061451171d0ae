# src/btcperf/adapters/reporting/log_sink.py
"""
Logging Sink - Result and Totals Reporting via Logging

Implements both the per-item result sink and the aggregate sink by writing
log lines and remembering the latest state, so the command line can print a
final summary.

Files that USE this module:
- btcperf.app (default sink for command-line runs)
"""
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Dict, Optional

from btcperf.domain.models import PerformanceResult, PortfolioTotals

log = logging.getLogger(__name__)


class LoggingSink:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or log
        self.results: Dict[str, PerformanceResult] = {}
        self.errors: Dict[str, str] = {}
        self.totals: Optional[PortfolioTotals] = None

    def publish_loading(self, item_id: str) -> None:
        self.log.debug("[%s] loading BTC prices", item_id)

    def publish_result(self, item_id: str, result: PerformanceResult) -> None:
        self.errors.pop(item_id, None)
        self.results[item_id] = result
        self.log.info(
            "[%s] %s: BTC %+.1f%% (%.2f) vs interest %.2f -> net %.2f, LTV %s, risk %s",
            item_id,
            "outperforming" if result.outperforming else "underperforming",
            result.btc_percent_change,
            result.btc_value_change,
            result.interest_cost,
            result.net_result,
            f"{result.loan_to_value:.2f}" if result.loan_to_value is not None else "n/a",
            result.risk_level.value if result.risk_level else "n/a",
        )

    def publish_error(self, item_id: str, reason: str) -> None:
        self.results.pop(item_id, None)
        self.errors[item_id] = reason
        self.log.warning("[%s] failed: %s", item_id, reason)

    def publish_throttled(self, item_id: str) -> None:
        self.log.warning("[%s] BTC price API rate limited - waiting for cooldown", item_id)

    def publish_portfolio_totals(self, totals: PortfolioTotals) -> None:
        changed = totals != self.totals
        self.totals = totals
        if changed:
            self.log.info(
                "Portfolio: %d of %d analyzed, %d outperforming, net %.2f, value %.0f",
                totals.analyzed_count,
                totals.total_positions,
                totals.outperforming_count,
                totals.total_net,
                totals.total_position_value,
            )

    def summary(self) -> Dict[str, object]:
        """JSON-friendly view of the latest totals, results and errors."""
        results = {}
        for item_id, result in self.results.items():
            data = asdict(result)
            if result.risk_level is not None:
                data["risk_level"] = result.risk_level.value
            results[item_id] = data
        return {
            "totals": asdict(self.totals) if self.totals else None,
            "results": results,
            "errors": dict(self.errors),
        }
