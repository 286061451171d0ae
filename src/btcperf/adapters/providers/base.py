# src/btcperf/adapters/providers/base.py
"""
Base Provider Interface for BTC Price Providers

This module defines the abstract base class for price providers: one call for
current prices in every supported currency, one call for the price on a past
date. Failures are raised as UpstreamError, with the HTTP status when known.

Files that USE this module:
- btcperf.adapters.providers.coingecko (CoinGeckoProvider implements PriceProvider)
- btcperf.application.pipeline (depends on the PriceProvider contract)
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict


class PriceProvider(ABC):
    @abstractmethod
    def fetch_current_prices(self) -> Dict[str, float]:
        """Return current BTC prices keyed by lower-case currency code."""
        raise NotImplementedError

    @abstractmethod
    def fetch_historical_price(self, day: date, currency: str) -> float:
        """Return the BTC price in ``currency`` on ``day``."""
        raise NotImplementedError
