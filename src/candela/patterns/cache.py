"""
Metric Memoization Cache

Window-wide aggregates (average body, EMA of ranges) are probed by many
catalog entries against the same window in one pass. This cache keeps the
most recent results, keyed by metric name, window content fingerprint and
period, and evicts the least recently used entry past a fixed capacity.

One cache belongs to one evaluator. All operations run under a lock so
several threads may share an evaluator without disturbing LRU order.
"""

import threading
from collections import OrderedDict
from typing import Callable, NamedTuple

from ..exceptions import InvalidArgument
from ..logger import get_logger
from ..models.evaluation import CacheStats
from ..models.market_data import BarWindow

logger = get_logger(__name__)

DEFAULT_CAPACITY = 20


class MetricKey(NamedTuple):
    """Identifies one cached aggregate."""
    metric_name: str
    window_fingerprint: str
    period: int


class MetricCache:
    """Bounded LRU map from MetricKey to float."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 1:
            raise InvalidArgument(f"Cache capacity must be a positive integer: {capacity!r}",
                                  argument="capacity", value=capacity)
        self.capacity = capacity
        self._entries: "OrderedDict[MetricKey, float]" = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @staticmethod
    def make_key(metric_name: str, window: BarWindow, period: int) -> MetricKey:
        return MetricKey(metric_name, window.fingerprint, period)

    def get_or_compute(
        self,
        metric_name: str,
        window: BarWindow,
        period: int,
        compute_fn: Callable[[], float]
    ) -> float:
        """
        Return the cached aggregate, computing and storing it on a miss.

        A hit marks the entry most recently used and does not call
        ``compute_fn``.
        """
        key = self.make_key(metric_name, window, period)

        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self._hits += 1
                logger.debug(f"Cache hit {metric_name}/{period} for window {key.window_fingerprint[:12]}")
                return self._entries[key]

            self._misses += 1
            logger.debug(f"Cache miss {metric_name}/{period} for window {key.window_fingerprint[:12]}")
            value = float(compute_fn())
            self._entries[key] = value

            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Evicted {evicted.metric_name}/{evicted.period} for window {evicted.window_fingerprint[:12]}")

            return value

    def clear(self) -> None:
        """Drop every entry and reset counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def keys(self) -> list:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries.keys())

    @property
    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                size=len(self._entries),
                capacity=self.capacity
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
