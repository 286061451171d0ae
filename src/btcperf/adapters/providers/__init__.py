"""
Provider Adapters - External API Clients

This package contains adapters for external BTC price APIs.
All providers implement the PriceProvider interface.
"""

from btcperf.adapters.providers.base import PriceProvider
from btcperf.adapters.providers.coingecko import CoinGeckoProvider

__all__ = [
    "PriceProvider",
    "CoinGeckoProvider",
]
