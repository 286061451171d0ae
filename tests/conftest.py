"""
Shared fixtures: a simulated clock and manually advanced timers.

FakeTimers.advance() moves the clock forward and fires due timers in time
order, so cooldowns and cache expiry can be tested without sleeping.
"""
import pytest  # Testing framework for writing and running tests

from btcperf.application.context import AnalysisContext
from btcperf.application.pipeline import FetchPipeline
from btcperf.shared.throttle import RequestThrottler


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, scheduler, interval, function):
        self.scheduler = scheduler
        self.interval = interval
        self.function = function
        self.due = None
        self.cancelled = False

    def start(self):
        self.due = self.scheduler.clock.now + self.interval
        self.scheduler.timers.append(self)

    def cancel(self):
        self.cancelled = True


class FakeTimers:
    """Timer factory compatible with threading.Timer(interval, fn)."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers = []

    def __call__(self, interval, function):
        return FakeTimer(self, interval, function)

    @property
    def active(self):
        return [t for t in self.timers if not t.cancelled and t.due is not None]

    def advance(self, seconds: float) -> None:
        target = self.clock.now + seconds
        while True:
            due = [t for t in self.active if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.clock.now = max(self.clock.now, timer.due)
            timer.function()
        self.clock.now = target


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers(clock):
    return FakeTimers(clock)


@pytest.fixture
def sleeps(clock):
    """Recording sleep that advances the fake clock."""
    calls = []

    def _sleep(seconds):
        calls.append(seconds)
        clock.advance(seconds)

    _sleep.calls = calls
    return _sleep


@pytest.fixture
def context(clock, timers):
    return AnalysisContext.create(
        clock=clock,
        timer_factory=timers,
        current_ttl=15 * 60,
        cooldown=60,
        tick_interval=1,
    )


@pytest.fixture
def make_pipeline(context, clock, sleeps):
    """Build a pipeline around the shared fake context with test-friendly timing."""

    def _make(provider, **kwargs):
        throttler = kwargs.pop(
            "throttler",
            RequestThrottler(
                min_spacing=0.05,
                history_size=10,
                burst_window=30,
                burst_max=5,
                clock=clock,
                sleep=sleeps,
            ),
        )
        kwargs.setdefault("item_delay", 1.0)
        kwargs.setdefault("sleep", sleeps)
        return FetchPipeline(context=context, provider=provider, throttler=throttler, **kwargs)

    return _make
