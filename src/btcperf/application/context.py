# src/btcperf/application/context.py
"""
Analysis Context - Explicitly Owned Shared State

One object holding everything the pipeline and the cooldown timers share:
the price cache, the rate-limit coordinator, the item table and the single
coarse lock that guards them. Pass it around instead of reaching for
module-level globals.

Files that USE this module:
- btcperf.application.pipeline (FetchPipeline operates on a context)
- btcperf.app (builds the context at startup)
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from btcperf.application.price_cache import PriceCache
from btcperf.application.rate_limit import RateLimitCoordinator, daemon_timer
from btcperf.domain.models import Item


@dataclass
class AnalysisContext:
    lock: threading.RLock
    price_cache: PriceCache
    rate_limit: RateLimitCoordinator
    items: Dict[str, Item] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        clock: Callable[[], float] = time.time,
        timer_factory: Callable = daemon_timer,
        current_ttl: Optional[float] = None,
        cooldown: Optional[float] = None,
        tick_interval: Optional[float] = None,
    ) -> AnalysisContext:
        """Build a context whose coordinator shares the context lock."""
        lock = threading.RLock()
        return cls(
            lock=lock,
            price_cache=PriceCache(current_ttl=current_ttl, clock=clock),
            rate_limit=RateLimitCoordinator(
                cooldown=cooldown,
                tick_interval=tick_interval,
                clock=clock,
                timer_factory=timer_factory,
                lock=lock,
            ),
        )

    def snapshot(self) -> List[Item]:
        """Consistent copy of all published items."""
        with self.lock:
            return list(self.items.values())

    def get_item(self, item_id: str) -> Optional[Item]:
        with self.lock:
            return self.items.get(item_id)
