# src/btcperf/application/price_cache.py
"""
Price Cache - Two-tier BTC Price Cache

Holds one shared "current prices" entry (all currencies from a single call)
that expires after a short TTL, and a permanent map of historical prices keyed
by (date, currency). Historical prices never change, so that map is never
evicted; it is also the only place historical requests are deduplicated.

Files that USE this module:
- btcperf.application.context (AnalysisContext owns one PriceCache)
- btcperf.application.pipeline (consults the cache before every fetch)
- tests.test_price_cache (unit tests)

Files that this module USES:
- btcperf.config (current-price TTL)
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Mapping, Optional, Tuple

from btcperf.config import settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceCacheEntry:
    value: object
    fetched_at: float


class PriceCache:
    """In-memory price cache with a TTL'd current slot and a permanent historical map."""

    def __init__(
        self,
        current_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            current_ttl: Seconds the current-price entry stays valid
            clock: Time source, seconds since epoch
        """
        self.current_ttl = settings.CURRENT_PRICE_TTL_SECONDS if current_ttl is None else current_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._current: Optional[PriceCacheEntry] = None
        self._historical: Dict[Tuple[date, str], PriceCacheEntry] = {}

    # --- current prices -------------------------------------------------

    def is_current_valid(self) -> bool:
        """
        Check if the current-price entry is still within its TTL.

        Returns:
            True if an entry exists and now - fetched_at < TTL
        """
        entry = self._current
        if entry is None:
            return False
        return self._clock() - entry.fetched_at < self.current_ttl

    def get_current(self) -> Optional[Dict[str, float]]:
        """Return prices by lower-case currency, or None when missing or expired."""
        with self._lock:
            if not self.is_current_valid():
                return None
            log.debug("Using cached current prices")
            return dict(self._current.value)

    def set_current(self, prices: Mapping[str, float]) -> None:
        """Overwrite the current-price slot; no merge with the previous entry."""
        normalized = {str(k).lower(): float(v) for k, v in prices.items()}
        with self._lock:
            self._current = PriceCacheEntry(value=normalized, fetched_at=self._clock())
        log.info("Current BTC prices cached for %s", ", ".join(sorted(normalized)))

    # --- historical prices ----------------------------------------------

    @staticmethod
    def _key(day: date, currency: str) -> Tuple[date, str]:
        return day, (currency or "").lower()

    def get_historical(self, day: date, currency: str) -> Optional[float]:
        with self._lock:
            entry = self._historical.get(self._key(day, currency))
        if entry is None:
            return None
        log.debug("Historical cache hit: %s %s", day, currency)
        return entry.value

    def set_historical(self, day: date, currency: str, price: float) -> None:
        key = self._key(day, currency)
        with self._lock:
            existing = self._historical.get(key)
            if existing is not None and existing.value == price:
                return
            self._historical[key] = PriceCacheEntry(value=float(price), fetched_at=self._clock())
        log.info("Historical price cached: %s %s = %s", day, key[1], price)

    def has_historical(self, day: date, currency: str) -> bool:
        with self._lock:
            return self._key(day, currency) in self._historical

    # --- diagnostics ----------------------------------------------------

    def stats(self) -> Dict[str, object]:
        """
        Snapshot of cache occupancy for debugging.

        Returns:
            Dictionary with current-entry age/validity and historical entry count
        """
        with self._lock:
            entry = self._current
            now = self._clock()
            return {
                "current_cached": entry is not None,
                "current_valid": self.is_current_valid(),
                "current_age_seconds": (now - entry.fetched_at) if entry else None,
                "current_expires_in_seconds": (
                    max(0.0, entry.fetched_at + self.current_ttl - now) if entry else None
                ),
                "historical_entries": len(self._historical),
            }

    def clear(self) -> None:
        with self._lock:
            self._current = None
            self._historical.clear()
        log.info("Price cache cleared")
