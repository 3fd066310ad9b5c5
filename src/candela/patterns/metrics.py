"""
Candle Metric Library

Per-bar measurements (size, body, shadows) and the two window-wide
aggregates every long/short classification depends on:

- average_body: plain mean of the real bodies of the newest bars
- average_distance: exponential moving average of bar ranges, the
  volatility yardstick behind the long-line rule

The per-bar functions are pure. ``MetricLibrary`` wraps the aggregates
with a ``MetricCache`` so repeated probes of one window cost nothing.
"""

from typing import Callable, Dict, Optional

from ..exceptions import EmptyWindow, InvalidArgument
from ..models.market_data import Bar, BarWindow
from .cache import MetricCache

AVERAGE_BODY = "average_body"
AVERAGE_DISTANCE = "average_distance"


def size(bar: Bar) -> float:
    """Range of the bar: high minus low."""
    return bar.high - bar.low


def body(bar: Bar) -> float:
    """Absolute distance between open and close."""
    return abs(bar.open - bar.close)


def upper_shadow(bar: Bar) -> float:
    return bar.high - max(bar.open, bar.close)


def lower_shadow(bar: Bar) -> float:
    return min(bar.open, bar.close) - bar.low


def average_body(window: BarWindow, period: int) -> float:
    """
    Mean body over bars ``0 .. min(len(window), period) - 1``.

    An empty window yields 0.0.
    """
    recent = window.head(period)
    if not recent:
        return 0.0
    return sum(body(bar) for bar in recent) / len(recent)


def average_distance(window: BarWindow, period: int) -> float:
    """
    EMA of bar ranges over the last ``period`` bars.

    The seed is the range of the oldest bar considered (``window[period]``,
    or the oldest bar available in a shorter window); the average then walks
    towards the current bar with smoothing factor ``2 / (period + 1)``.
    The walk runs oldest to newest, so the newest bars weigh the most.
    """
    if len(window) == 0:
        raise EmptyWindow("average_distance needs at least one bar")

    exponent = 2.0 / (period + 1)
    start = min(len(window) - 1, period)

    ema = size(window[start])
    for i in range(start - 1, -1, -1):
        ema = size(window[i]) * exponent + ema * (1 - exponent)

    return ema


_AGGREGATES: Dict[str, Callable[[BarWindow, int], float]] = {
    AVERAGE_BODY: average_body,
    AVERAGE_DISTANCE: average_distance,
}

_ALIASES = {
    "averageBody": AVERAGE_BODY,
    "averageDistance": AVERAGE_DISTANCE,
}


def _validate_period(period) -> int:
    if not isinstance(period, int) or isinstance(period, bool) or period <= 0:
        raise InvalidArgument(f"Period must be a positive integer: {period!r}", argument="period", value=period)
    return period


class MetricLibrary:
    """Cached access to the window aggregates."""

    def __init__(self, cache: Optional[MetricCache] = None):
        self.cache = cache if cache is not None else MetricCache()

    @staticmethod
    def metric_names() -> list:
        return list(_AGGREGATES)

    def compute(self, name: str, window: BarWindow, period: int) -> float:
        """
        Compute a named aggregate through the cache.

        Raises:
            InvalidArgument: unknown metric name or non-positive period
            EmptyWindow: average_distance over an empty window
        """
        metric_name = _ALIASES.get(name, name)
        if metric_name not in self.metric_names():
            raise InvalidArgument(
                f"Unknown metric: {name} (expected one of {', '.join(self.metric_names())})",
                argument="name",
                value=name,
            )
        _validate_period(period)

        window = BarWindow.coerce(window)
        fn = _AGGREGATES[metric_name]
        return self.cache.get_or_compute(metric_name, window, period, lambda: fn(window, period))

    def average_body(self, window: BarWindow, period: int) -> float:
        return self.compute(AVERAGE_BODY, window, period)

    def average_distance(self, window: BarWindow, period: int) -> float:
        return self.compute(AVERAGE_DISTANCE, window, period)
