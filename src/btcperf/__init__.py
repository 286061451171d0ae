"""
BTCPerf - Collateralised Loan vs. Bitcoin Performance Engine

Fetches, caches and reconciles Bitcoin prices from a rate-limited public API
to compare each loan position against the hypothetical "bought BTC instead"
outcome, then folds per-position results into portfolio totals.
"""

__version__ = "1.1.0"
