# src/btcperf/shared/throttle.py
"""
Request Throttler - Outbound Spacing and Throttle Detection

The price API throttles aggressively and often fails in ways that do not say
so (dropped connections, CORS-style transport errors). This module keeps a
small rolling history of outbound requests, enforces a courtesy spacing
between calls, and decides whether a failed call should be treated as
throttling.

Files that USE this module:
- btcperf.application.pipeline (wait_turn/record around every outbound call,
  ThrottleDetector to classify failures)
- tests.test_throttle (unit tests)

Files that this module USES:
- btcperf.config (default thresholds and indicator list)
- btcperf.domain.errors (UpstreamError carries the optional status code)
"""
import logging
import time
from collections import deque
from typing import Callable, Deque, Iterable, Optional

from btcperf.config import settings
from btcperf.domain.errors import UpstreamError

log = logging.getLogger(__name__)


class RequestThrottler:
    """In-memory rolling window of outbound request timestamps."""

    def __init__(
        self,
        min_spacing: Optional[float] = None,
        history_size: Optional[int] = None,
        burst_window: Optional[float] = None,
        burst_max: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            min_spacing: Minimum seconds between two outbound calls
            history_size: Number of request timestamps kept
            burst_window: Window (seconds) used by is_requesting_too_fast
            burst_max: Requests tolerated inside burst_window
            clock: Time source, seconds since epoch
            sleep: Blocking sleep used to enforce spacing
        """
        self.min_spacing = (
            settings.MIN_REQUEST_SPACING_SECONDS if min_spacing is None else min_spacing
        )
        size = settings.request_history_size if history_size is None else history_size
        self.burst_window = settings.burst_window_seconds if burst_window is None else burst_window
        self.burst_max = settings.burst_max_requests if burst_max is None else burst_max
        self._clock = clock
        self._sleep = sleep
        self._history: Deque[float] = deque(maxlen=size)
        self.last_request: Optional[float] = None

    def wait_turn(self) -> float:
        """
        Sleep long enough to keep min_spacing since the previous request.

        Returns:
            Seconds slept (0.0 when no wait was needed)
        """
        if self.last_request is None:
            return 0.0
        elapsed = self._clock() - self.last_request
        if elapsed >= self.min_spacing:
            return 0.0
        delay = self.min_spacing - elapsed
        log.debug("Adding %.0fms delay before next request", delay * 1000)
        self._sleep(delay)
        return delay

    def record(self) -> None:
        """Record an outbound request happening now."""
        now = self._clock()
        self.last_request = now
        self._history.append(now)

    def count_since(self, window: float) -> int:
        """Number of recorded requests within the trailing window (seconds)."""
        cutoff = self._clock() - window
        return sum(1 for ts in self._history if ts > cutoff)

    def is_requesting_too_fast(self) -> bool:
        """True when more than burst_max requests happened in the burst window."""
        recent = self.count_since(self.burst_window)
        if recent > self.burst_max:
            log.warning("Requesting too fast: %d requests in last %ss", recent, self.burst_window)
            return True
        return False

    def reset(self) -> None:
        self._history.clear()
        self.last_request = None


class ThrottleDetector:
    """
    Pluggable predicate deciding whether a failed call means "slow down".

    A failure counts as throttling when it carries HTTP 429, when its message
    contains one of the indicator phrases, when more than ``recent_max``
    requests were made within ``recent_window`` seconds, or when the throttler
    reports a burst. The request-count rule can fire on light legitimate
    bursts; it is kept because the upstream service disguises throttling as
    generic transport failures.
    """

    def __init__(
        self,
        throttler: RequestThrottler,
        indicators: Optional[Iterable[str]] = None,
        recent_window: Optional[float] = None,
        recent_max: Optional[int] = None,
    ):
        self.throttler = throttler
        source = settings.THROTTLE_INDICATORS if indicators is None else indicators
        self.indicators = tuple(i.lower() for i in source)
        self.recent_window = (
            settings.recent_window_seconds if recent_window is None else recent_window
        )
        self.recent_max = settings.recent_max_requests if recent_max is None else recent_max

    def matches_indicator(self, message: str) -> bool:
        text = (message or "").lower()
        return any(indicator in text for indicator in self.indicators)

    def __call__(self, error: Exception) -> bool:
        """
        Classify a failed outbound call.

        Args:
            error: Exception raised by the price service boundary

        Returns:
            True if the failure should be handled as throttling
        """
        if isinstance(error, UpstreamError) and error.status_code == 429:
            log.warning("Explicit 429 from price API: %s", error)
            return True

        has_indicator = self.matches_indicator(str(error))
        recent = self.throttler.count_since(self.recent_window)
        likely = recent > self.recent_max
        too_fast = self.throttler.is_requesting_too_fast()

        if has_indicator or likely or too_fast:
            log.warning(
                "Rate limit detected from error: %r (recent requests: %d, too fast: %s)",
                str(error), recent, too_fast,
            )
            return True
        return False
