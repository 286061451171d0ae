# src/btcperf/application/portfolio.py
"""
Portfolio Aggregator - Fold Item States into Portfolio Totals

Totals are always rebuilt from the currently published items, never patched
incrementally, so they stay correct however items complete.
"""
from __future__ import annotations

from typing import Callable, Iterable, Optional

from btcperf.domain.models import Item, ItemState, PortfolioTotals, Position


def aggregate(
    items: Iterable[Item],
    is_excluded: Optional[Callable[[Position], bool]] = None,
) -> PortfolioTotals:
    """
    Compute portfolio totals from a snapshot of items.

    Args:
        items: Current item states
        is_excluded: Optional predicate; excluded positions are not counted at all

    Returns:
        PortfolioTotals
    """
    total_positions = 0
    analyzed = 0
    outperforming = 0
    total_net = 0.0
    total_value = 0.0

    for item in items:
        if is_excluded is not None and is_excluded(item.position):
            continue
        total_positions += 1

        if item.state is ItemState.FAILED:
            analyzed += 1
        elif item.state is ItemState.RESULT and item.result is not None:
            analyzed += 1
            total_net += item.result.net_result
            if item.result.outperforming:
                outperforming += 1
            total_value += item.position.principal or 0.0

    return PortfolioTotals(
        total_net=total_net,
        outperforming_count=outperforming,
        analyzed_count=analyzed,
        total_position_value=total_value,
        total_positions=total_positions,
    )
