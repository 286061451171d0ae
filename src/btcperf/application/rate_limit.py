# src/btcperf/application/rate_limit.py
"""
Rate-Limit Coordinator - Shared Cooldown After Throttling

Tracks whether the price API is currently throttling us. Entering the limited
state arms one cooldown timer (and a one-second display tick); items that hit
throttling park here instead of failing. When the cooldown expires the parked
items are handed back, exactly once, through the resolution callback.

Triggering again while already limited cancels and re-arms the timers, so the
cooldown always runs from the most recent throttle signal and never resolves
twice.

Files that USE this module:
- btcperf.application.context (AnalysisContext owns one coordinator)
- btcperf.application.pipeline (trigger, add_pending, resolution callback)
- tests.test_rate_limit (unit tests)

Files that this module USES:
- btcperf.config (cooldown and tick intervals)
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional

from btcperf.config import settings

log = logging.getLogger(__name__)

ResolutionCallback = Callable[[List[str]], None]
TickCallback = Callable[[float, int], None]


def daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    """Default timer factory: a daemon threading.Timer (caller starts it)."""
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


@dataclass(frozen=True)
class RateLimitStatus:
    limited: bool
    limited_at: Optional[float]
    remaining_seconds: float
    pending_count: int


class RateLimitCoordinator:
    """Process-wide Normal -> Limited -> Normal state machine."""

    def __init__(
        self,
        cooldown: Optional[float] = None,
        tick_interval: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        timer_factory: Callable = daemon_timer,
        lock: Optional[threading.RLock] = None,
    ):
        """
        Args:
            cooldown: Seconds to wait after the last throttle signal
            tick_interval: Seconds between display ticks while limited
            clock: Time source, seconds since epoch
            timer_factory: ``factory(interval, fn)`` returning an object with start()/cancel()
            lock: Lock shared with the pipeline's item table
        """
        self.cooldown = settings.rate_limit_cooldown_seconds if cooldown is None else cooldown
        self.tick_interval = (
            settings.rate_limit_tick_seconds if tick_interval is None else tick_interval
        )
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = lock or threading.RLock()

        self.limited = False
        self.limited_at: Optional[float] = None
        self._pending: Dict[str, None] = {}  # insertion-ordered set
        self._generation = 0
        self._resolve_timer = None
        self._tick_timer = None
        self._on_resolved: Optional[ResolutionCallback] = None
        self._on_tick: Optional[TickCallback] = None

    def set_resolution_callback(self, callback: Optional[ResolutionCallback]) -> None:
        self._on_resolved = callback

    def set_tick_callback(self, callback: Optional[TickCallback]) -> None:
        self._on_tick = callback

    @property
    def is_limited(self) -> bool:
        return self.limited

    @property
    def pending(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    def trigger(self, reason: str = "") -> None:
        """
        Enter (or re-enter) the limited state and restart the cooldown.

        Args:
            reason: Free text for the log line
        """
        with self._lock:
            already = self.limited
            self._cancel_timers()
            self._generation += 1
            generation = self._generation
            self.limited = True
            self.limited_at = self._clock()

            self._resolve_timer = self._timer_factory(
                self.cooldown, partial(self._cooldown_expired, generation)
            )
            self._resolve_timer.start()
            self._arm_tick(generation)

        if already:
            log.warning("Rate limited again, cooldown restarted (%ss): %s", self.cooldown, reason)
        else:
            log.warning("Rate limited - starting %ss cooldown: %s", self.cooldown, reason)

    def add_pending(self, item_id: str) -> bool:
        """
        Park an item until the cooldown resolves.

        Returns:
            False if not currently limited; the caller must requeue the item itself
        """
        with self._lock:
            if not self.limited:
                return False
            self._pending[item_id] = None
            return True

    def discard_pending(self, item_id: str) -> None:
        with self._lock:
            self._pending.pop(item_id, None)

    def remaining_seconds(self) -> float:
        with self._lock:
            if not self.limited or self.limited_at is None:
                return 0.0
            return max(0.0, self.cooldown - (self._clock() - self.limited_at))

    def status(self) -> RateLimitStatus:
        with self._lock:
            return RateLimitStatus(
                limited=self.limited,
                limited_at=self.limited_at,
                remaining_seconds=self.remaining_seconds(),
                pending_count=len(self._pending),
            )

    def shutdown(self) -> None:
        """Tear down timers and drop parked items without invoking the callback."""
        with self._lock:
            self._cancel_timers()
            self._generation += 1
            self.limited = False
            self.limited_at = None
            self._pending.clear()
        log.info("Rate-limit coordinator stopped")

    # --- timers ---------------------------------------------------------

    def _arm_tick(self, generation: int) -> None:
        self._tick_timer = self._timer_factory(
            self.tick_interval, partial(self._tick, generation)
        )
        self._tick_timer.start()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self.limited:
                return
            remaining = self.remaining_seconds()
            pending_count = len(self._pending)
            self._arm_tick(generation)
            callback = self._on_tick
        log.debug("Rate limited - retrying in %ds (%d pending)", round(remaining), pending_count)
        if callback:
            callback(remaining, pending_count)

    def _cooldown_expired(self, generation: int) -> None:
        with self._lock:
            # A stale timer that fired after being cancelled must not resolve
            if generation != self._generation or not self.limited:
                return
            self._cancel_timers()
            self.limited = False
            self.limited_at = None
            pending = list(self._pending)
            self._pending.clear()
            callback = self._on_resolved

        log.info("Rate limit resolved - %d pending item(s) to resubmit", len(pending))
        if callback:
            callback(pending)

    def _cancel_timers(self) -> None:
        if self._resolve_timer is not None:
            self._resolve_timer.cancel()
            self._resolve_timer = None
        if self._tick_timer is not None:
            self._tick_timer.cancel()
            self._tick_timer = None
