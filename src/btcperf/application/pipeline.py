# src/btcperf/application/pipeline.py
"""
Fetch Pipeline - Per-position Price Retrieval and Analysis

Drives each position through Queued -> Loading -> Result/Failed, parking it
in AwaitingRetry when the price API throttles us. A single worker drains the
queue sequentially with a fixed delay between items; the rate-limit
coordinator hands parked items back once its cooldown expires.

Every state change is published atomically (state plus result or error) and
followed by a fresh portfolio aggregate.

Files that USE this module:
- btcperf.app (runs processing passes)
- tests.test_pipeline (unit and scenario tests)

Files that this module USES:
- btcperf.application.context (shared lock, cache, coordinator, item table)
- btcperf.application.performance (calculate_performance)
- btcperf.application.portfolio (aggregate)
- btcperf.shared.throttle (RequestThrottler, ThrottleDetector)
- btcperf.adapters.providers.base (PriceProvider interface)
"""
from __future__ import annotations

import logging
import math
import re
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Protocol, Sequence

from btcperf.adapters.providers.base import PriceProvider
from btcperf.application.context import AnalysisContext
from btcperf.application.performance import calculate_performance
from btcperf.application.portfolio import aggregate
from btcperf.config import settings
from btcperf.domain.errors import (
    ComputationError,
    TransientThrottle,
    UpstreamError,
    ValidationError,
)
from btcperf.domain.models import Item, ItemState, PerformanceResult, PortfolioTotals, Position
from btcperf.shared.throttle import RequestThrottler, ThrottleDetector

log = logging.getLogger(__name__)


class PositionSource(Protocol):
    """Produces the positions for one processing pass."""
    def list_positions(self) -> Sequence[Position]:
        ...


class ResultSink(Protocol):
    """One-way per-item notifications."""
    def publish_loading(self, item_id: str) -> None:
        ...

    def publish_result(self, item_id: str, result: PerformanceResult) -> None:
        ...

    def publish_error(self, item_id: str, reason: str) -> None:
        ...

    def publish_throttled(self, item_id: str) -> None:
        ...


class AggregateSink(Protocol):
    def publish_portfolio_totals(self, totals: PortfolioTotals) -> None:
        ...


_CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")


def validate_position(position: Position) -> None:
    """
    Check a position carries every field the analysis needs.

    Raises:
        ValidationError: If a field is missing, not a number, or out of range
    """
    required = (
        "currency",
        "principal",
        "annual_rate_percent",
        "reference_date",
        "collateral_quantity",
    )
    missing = [name for name in required if getattr(position, name) is None]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    if not _CURRENCY_RE.match(str(position.currency)):
        raise ValidationError(f"Invalid currency code: {position.currency!r}")

    for name, strictly_positive in (
        ("principal", False),
        ("annual_rate_percent", False),
        ("collateral_quantity", True),
    ):
        value = getattr(position, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            raise ValidationError(f"{name} is not a number: {value!r}")
        if math.isinf(value) or value < 0 or (strictly_positive and value == 0):
            raise ValidationError(f"{name} out of range: {value!r}")


class FetchPipeline:
    """Sequential, throttle-aware processing of positions into results."""

    def __init__(
        self,
        context: AnalysisContext,
        provider: PriceProvider,
        result_sink: Optional[ResultSink] = None,
        aggregate_sink: Optional[AggregateSink] = None,
        is_excluded: Optional[Callable[[Position], bool]] = None,
        throttler: Optional[RequestThrottler] = None,
        detector: Optional[Callable[[Exception], bool]] = None,
        item_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            context: Shared state (cache, coordinator, item table, lock)
            provider: Price service boundary
            result_sink: Receives per-item notifications
            aggregate_sink: Receives portfolio totals after every transition
            is_excluded: Positions for which this returns True are never submitted or counted
            throttler: Outbound spacing and request history
            detector: Predicate classifying a failed call as throttling
            item_delay: Seconds between consecutive processed items
            sleep: Blocking sleep used for the item delay
        """
        self.context = context
        self.provider = provider
        self.result_sink = result_sink
        self.aggregate_sink = aggregate_sink
        self.is_excluded = is_excluded
        self.throttler = throttler or RequestThrottler()
        self.detector = detector or ThrottleDetector(self.throttler)
        self.item_delay = settings.item_delay_seconds if item_delay is None else item_delay
        self._sleep = sleep

        self._queue: Deque[str] = deque()
        self._worker = threading.Lock()
        self._changed = threading.Condition(context.lock)
        self._stopped = False

        context.rate_limit.set_resolution_callback(self._on_rate_limit_resolved)

    # --- public operations ----------------------------------------------

    def submit(self, position: Position) -> bool:
        """
        Queue a position for analysis.

        Returns:
            False when the position is excluded, already known, or the pipeline is stopped
        """
        if self.is_excluded is not None and self.is_excluded(position):
            log.debug("Skipping excluded position %s", position.id)
            return False
        with self.context.lock:
            if self._stopped:
                return False
            if position.id in self.context.items:
                log.debug("Position %s already submitted, ignoring duplicate", position.id)
                return False
            self._queue.append(position.id)
            self._publish(Item(position=position))
        return True

    def reset(self, item_id: str) -> bool:
        """
        Clear an item's result or error and return it to Queued for reprocessing.

        Items currently Loading cannot be reset. The item is processed on the
        next drain().

        Returns:
            True if the item was reset
        """
        with self.context.lock:
            item = self.context.items.get(item_id)
            if item is None or self._stopped:
                return False
            if item.state is ItemState.LOADING:
                log.warning("Cannot reset %s while it is loading", item_id)
                return False
            if item.state is ItemState.AWAITING_RETRY:
                self.context.rate_limit.discard_pending(item_id)
            if item_id not in self._queue:
                self._queue.append(item_id)
            self._publish(Item(position=item.position))
        log.info("Item %s reset for reprocessing", item_id)
        return True

    def run_pass(self, source: PositionSource) -> PortfolioTotals:
        """
        Submit every position from the source and process the queue.

        Throttled items stay AwaitingRetry and are resumed by the cooldown.

        Returns:
            Portfolio totals after the pass
        """
        positions = list(source.list_positions())
        submitted = sum(1 for position in positions if self.submit(position))
        log.info("Processing pass: %d position(s) listed, %d submitted", len(positions), submitted)
        self.drain()
        return self.totals()

    def drain(self) -> None:
        """Process queued items until the queue is empty; no-op if a worker is already running."""
        while True:
            if not self._worker.acquire(blocking=False):
                return
            try:
                self._drain_queue()
            finally:
                self._worker.release()
            # Items queued while the worker was finishing up
            with self.context.lock:
                if self._stopped or not self._queue:
                    return

    def stop(self) -> None:
        """Stop feeding items and tear down timers; in-flight results are discarded."""
        with self.context.lock:
            self._stopped = True
            self._queue.clear()
            self.context.rate_limit.shutdown()
            self._changed.notify_all()
        log.info("Pipeline stopped")

    @property
    def stopped(self) -> bool:
        return self._stopped

    def totals(self) -> PortfolioTotals:
        return aggregate(self.context.snapshot(), self.is_excluded)

    def has_outstanding(self) -> bool:
        with self.context.lock:
            return any(not item.is_terminal for item in self.context.items.values())

    def wait_until_settled(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every item is Result or Failed (or the pipeline stops).

        Returns:
            True if settled, False on timeout
        """
        with self._changed:
            return self._changed.wait_for(
                lambda: self._stopped or not self.has_outstanding(), timeout=timeout
            )

    def status(self) -> Dict[str, object]:
        """Diagnostic snapshot: item counts per state, queue length, cooldown, cache."""
        with self.context.lock:
            counts = {state.value: 0 for state in ItemState}
            for item in self.context.items.values():
                counts[item.state.value] += 1
            return {
                "items": counts,
                "queued": len(self._queue),
                "stopped": self._stopped,
                "rate_limit": self.context.rate_limit.status(),
                "cache": self.context.price_cache.stats(),
            }

    # --- worker ---------------------------------------------------------

    def _drain_queue(self) -> None:
        while True:
            with self.context.lock:
                if self._stopped or not self._queue:
                    return
                item_id = self._queue.popleft()

            fetched = self._process_item(item_id)

            if fetched and self.item_delay > 0:
                with self.context.lock:
                    more = bool(self._queue) and not self._stopped
                if more:
                    self._sleep(self.item_delay)

    def _process_item(self, item_id: str) -> bool:
        """
        Run one item through the fetch/compute steps.

        Returns:
            True if the item was actually processed (not skipped or parked)
        """
        with self.context.lock:
            item = self.context.items.get(item_id)
            if self._stopped or item is None:
                return False
            if item.state not in (ItemState.QUEUED, ItemState.AWAITING_RETRY):
                return False
            if self.context.rate_limit.add_pending(item_id):
                log.info("Rate limited - item %s parked until cooldown ends", item_id)
                if item.state is not ItemState.AWAITING_RETRY:
                    self._publish(item.with_state(ItemState.AWAITING_RETRY))
                return False
            self._publish(item.with_state(ItemState.LOADING))

        position = item.position
        try:
            validate_position(position)
            log.info(
                "Processing %s: %s %s at %s%% from %s",
                position.id, position.currency, position.principal,
                position.annual_rate_percent, position.reference_date,
            )
            current_prices = self._current_prices()
            currency = position.currency.lower()
            current_price = current_prices.get(currency)
            if current_price is None:
                raise UpstreamError(f"No current BTC price for {position.currency}")
            historical_price = self._historical_price(position)
            result = calculate_performance(
                position.principal,
                position.annual_rate_percent,
                historical_price,
                current_price,
                position.collateral_quantity,
            )
        except TransientThrottle as e:
            self._park(item_id, str(e))
        except (ValidationError, UpstreamError, ComputationError) as e:
            log.warning("Item %s failed: %s", item_id, e)
            self._finish(item_id, ItemState.FAILED, error=str(e))
        except Exception as e:
            log.exception("Processing error for item %s: %s", item_id, e)
            self._finish(item_id, ItemState.FAILED, error=f"Processing error occurred: {e}")
        else:
            log.info(
                "Analysis complete for %s: %s (net %.2f)",
                item_id, "OUTPERFORMING" if result.outperforming else "UNDERPERFORMING",
                result.net_result,
            )
            self._finish(item_id, ItemState.RESULT, result=result)
        return True

    def _current_prices(self) -> Dict[str, float]:
        cache = self.context.price_cache
        prices = cache.get_current()
        if prices is not None:
            return prices
        fetched = self._call("current prices", self.provider.fetch_current_prices)
        if not fetched:
            raise UpstreamError("Empty current price response")
        cache.set_current(fetched)
        return {str(k).lower(): float(v) for k, v in fetched.items()}

    def _historical_price(self, position: Position) -> float:
        cache = self.context.price_cache
        cached = cache.get_historical(position.reference_date, position.currency)
        if cached is not None:
            return cached
        price = self._call(
            f"historical price {position.reference_date} {position.currency}",
            self.provider.fetch_historical_price,
            position.reference_date,
            position.currency,
        )
        if price is None:
            raise UpstreamError(
                f"Failed to fetch BTC price for {position.reference_date} {position.currency}"
            )
        if not math.isfinite(price) or price <= 0:
            raise ComputationError(
                f"Historical BTC price for {position.reference_date} is {price}, cannot compare"
            )
        cache.set_historical(position.reference_date, position.currency, price)
        return price

    def _call(self, what: str, fn: Callable, *args):
        """One outbound call: cooldown gate, spacing, history, throttle classification."""
        if self.context.rate_limit.is_limited:
            raise TransientThrottle(f"{what}: price API cooling down")

        self.throttler.wait_turn()
        self.throttler.record()
        log.info("Fetching %s from price API", what)
        try:
            return fn(*args)
        except Exception as e:
            if self.detector(e):
                self.context.rate_limit.trigger(f"{what}: {e}")
                raise TransientThrottle(f"{what}: {e}") from e
            if isinstance(e, UpstreamError):
                raise
            raise UpstreamError(f"{what}: {e}") from e

    # --- transitions ----------------------------------------------------

    def _park(self, item_id: str, reason: str) -> None:
        with self.context.lock:
            item = self.context.items.get(item_id)
            if self._stopped or item is None or item.state is not ItemState.LOADING:
                return
            if self.context.rate_limit.add_pending(item_id):
                log.info("Item %s queued for retry after rate limit: %s", item_id, reason)
                self._publish(item.with_state(ItemState.AWAITING_RETRY))
            else:
                # Cooldown already over: straight back onto the queue
                self._queue.append(item_id)
                self._publish(item.with_state(ItemState.AWAITING_RETRY))

    def _finish(
        self,
        item_id: str,
        state: ItemState,
        result: Optional[PerformanceResult] = None,
        error: Optional[str] = None,
    ) -> None:
        with self.context.lock:
            item = self.context.items.get(item_id)
            if self._stopped or item is None or item.state is not ItemState.LOADING:
                return
            self._publish(item.with_state(state, result=result, error=error))

    def _on_rate_limit_resolved(self, item_ids: List[str]) -> None:
        with self.context.lock:
            if self._stopped:
                return
            resumed = 0
            for item_id in item_ids:
                item = self.context.items.get(item_id)
                if item is None or item.state is not ItemState.AWAITING_RETRY:
                    continue
                if item_id not in self._queue:
                    self._queue.append(item_id)
                    resumed += 1
        log.info("Resubmitting %d item(s) after rate limit", resumed)
        self.drain()

    def _publish(self, item: Item) -> None:
        """Store the item and notify sinks. Caller holds the context lock."""
        self.context.items[item.id] = item
        sink = self.result_sink
        if sink is not None:
            self._notify(sink, item)
        if self.aggregate_sink is not None:
            totals = aggregate(self.context.items.values(), self.is_excluded)
            try:
                self.aggregate_sink.publish_portfolio_totals(totals)
            except Exception as e:
                log.error("Aggregate sink failed: %s", e, exc_info=True)
        self._changed.notify_all()

    @staticmethod
    def _notify(sink: ResultSink, item: Item) -> None:
        try:
            if item.state is ItemState.LOADING:
                sink.publish_loading(item.id)
            elif item.state is ItemState.AWAITING_RETRY:
                sink.publish_throttled(item.id)
            elif item.state is ItemState.RESULT:
                sink.publish_result(item.id, item.result)
            elif item.state is ItemState.FAILED:
                sink.publish_error(item.id, item.error or "Unknown error")
        except Exception as e:
            log.error("Result sink failed for %s: %s", item.id, e, exc_info=True)
