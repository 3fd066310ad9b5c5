"""
Unit tests for the metric memoization cache.

Covers hit/miss behaviour, exact LRU eviction order, content-keyed
sharing between equal windows and use from several threads.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from candela.exceptions import InvalidArgument
from candela.models.market_data import Bar, BarWindow
from candela.patterns.cache import MetricCache, MetricKey
from candela.patterns.metrics import MetricLibrary


def create_test_window(seed: float = 100.0, length: int = 3) -> BarWindow:
    """Newest-first window whose content depends on ``seed``."""
    return BarWindow([
        Bar(open=seed + i, high=seed + i + 2, low=seed + i - 1, close=seed + i + 1)
        for i in range(length)
    ])


class CountingCompute:
    """Compute function that records how often it is called."""

    def __init__(self, value: float = 1.0):
        self.value = value
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        return self.value


class TestMetricCacheBasics:
    """Test hits, misses and keys."""

    def setup_method(self):
        self.cache = MetricCache()
        self.window = create_test_window()

    def test_miss_then_hit(self):
        compute = CountingCompute(2.5)

        first = self.cache.get_or_compute("average_body", self.window, 10, compute)
        second = self.cache.get_or_compute("average_body", self.window, 10, compute)

        assert first == second == 2.5
        assert compute.calls == 1
        assert self.cache.stats.hits == 1
        assert self.cache.stats.misses == 1

    def test_key_parts_are_distinct(self):
        compute = CountingCompute()

        self.cache.get_or_compute("average_body", self.window, 10, compute)
        self.cache.get_or_compute("average_distance", self.window, 10, compute)
        self.cache.get_or_compute("average_body", self.window, 25, compute)
        self.cache.get_or_compute("average_body", create_test_window(200.0), 10, compute)

        assert compute.calls == 4
        assert len(self.cache) == 4

    def test_equal_windows_share_entries(self):
        """Keys come from window content, not object identity."""
        compute = CountingCompute()

        self.cache.get_or_compute("average_body", create_test_window(), 10, compute)
        self.cache.get_or_compute("average_body", create_test_window(), 10, compute)

        assert compute.calls == 1

    def test_contains_by_key(self):
        self.cache.get_or_compute("average_body", self.window, 10, CountingCompute())

        assert MetricKey("average_body", self.window.fingerprint, 10) in self.cache
        assert MetricCache.make_key("average_body", self.window, 25) not in self.cache

    def test_value_stored_as_float(self):
        value = self.cache.get_or_compute("average_body", self.window, 10, lambda: 3)

        assert isinstance(value, float)

    def test_compute_error_is_not_cached(self):
        def failing():
            raise ZeroDivisionError("boom")

        with pytest.raises(ZeroDivisionError):
            self.cache.get_or_compute("average_body", self.window, 10, failing)

        assert len(self.cache) == 0

    def test_clear(self):
        self.cache.get_or_compute("average_body", self.window, 10, CountingCompute())
        self.cache.clear()

        stats = self.cache.stats
        assert len(self.cache) == 0
        assert stats.hits == stats.misses == stats.evictions == 0

    @pytest.mark.parametrize("capacity", [0, -3, 1.5, True, "20"])
    def test_invalid_capacity(self, capacity):
        with pytest.raises(InvalidArgument):
            MetricCache(capacity=capacity)


class TestLRUEviction:
    """Test capacity bound and least-recently-used order."""

    def setup_method(self):
        self.cache = MetricCache(capacity=20)
        self.window = create_test_window()

    def fill(self, periods):
        for period in periods:
            self.cache.get_or_compute("average_body", self.window, period, CountingCompute(float(period)))

    def test_twenty_first_key_evicts_oldest(self):
        self.fill(range(1, 22))

        periods = [key.period for key in self.cache.keys()]
        assert len(self.cache) == 20
        assert periods == list(range(2, 22))
        assert self.cache.stats.evictions == 1

    def test_evicted_key_is_recomputed(self):
        self.fill(range(1, 22))
        compute = CountingCompute(1.0)

        self.cache.get_or_compute("average_body", self.window, 1, compute)

        assert compute.calls == 1

    def test_hit_refreshes_recency(self):
        self.fill(range(1, 21))
        self.cache.get_or_compute("average_body", self.window, 1, CountingCompute())
        self.fill([21])

        periods = [key.period for key in self.cache.keys()]
        assert 1 in periods
        assert 2 not in periods
        assert periods[-1] == 21
        assert periods[-2] == 1

    def test_capacity_one(self):
        cache = MetricCache(capacity=1)
        cache.get_or_compute("average_body", self.window, 1, CountingCompute())
        cache.get_or_compute("average_body", self.window, 2, CountingCompute())

        assert [key.period for key in cache.keys()] == [2]

    def test_stats_snapshot(self):
        self.fill(range(1, 26))
        self.fill([25])

        stats = self.cache.stats
        assert stats.size == 20
        assert stats.capacity == 20
        assert stats.misses == 25
        assert stats.hits == 1
        assert stats.evictions == 5
        assert stats.hit_rate == pytest.approx(1 / 26)


class TestConcurrentAccess:
    """Test the cache shared between threads."""

    def test_parallel_library_calls(self):
        cache = MetricCache(capacity=8)
        library = MetricLibrary(cache)
        windows = [create_test_window(100.0 + i, length=30) for i in range(12)]
        expected = {
            (i, period): MetricLibrary().average_distance(window, period)
            for i, window in enumerate(windows)
            for period in (5, 25)
        }

        def work(n):
            i = n % len(windows)
            period = 5 if n % 2 else 25
            return (i, period), library.average_distance(windows[i], period)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(work, range(400)))

        for key, value in results:
            assert value == expected[key]

        stats = cache.stats
        assert stats.hits + stats.misses == 400
        assert stats.size <= 8
        assert len(cache.keys()) == stats.size

    def test_single_compute_per_key_under_contention(self):
        cache = MetricCache()
        window = create_test_window()
        compute = CountingCompute(4.0)
        barrier = threading.Barrier(10)

        def work():
            barrier.wait()
            return cache.get_or_compute("average_body", window, 10, compute)

        with ThreadPoolExecutor(max_workers=10) as pool:
            futures = [pool.submit(work) for _ in range(10)]
            values = [future.result() for future in futures]

        assert values == [4.0] * 10
        assert compute.calls == 1


class ListHandler(logging.Handler):
    """Collects records emitted during a test."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestCacheLogging:
    """Test that hits, misses and evictions are logged at DEBUG."""

    def setup_method(self):
        self.handler = ListHandler()
        self.logger = logging.getLogger("candela.patterns.cache")
        self.previous_level = self.logger.level
        self.logger.setLevel(logging.DEBUG)
        self.logger.addHandler(self.handler)

    def teardown_method(self):
        self.logger.removeHandler(self.handler)
        self.logger.setLevel(self.previous_level)

    def messages(self) -> list:
        return [r.getMessage() for r in self.handler.records if r.levelno == logging.DEBUG]

    def test_miss_then_hit_logged(self):
        cache = MetricCache()
        window = create_test_window()

        cache.get_or_compute("average_body", window, 10, CountingCompute())
        cache.get_or_compute("average_body", window, 10, CountingCompute())

        messages = self.messages()
        assert len(messages) == 2
        assert messages[0].startswith("Cache miss average_body/10")
        assert messages[1].startswith("Cache hit average_body/10")
        assert window.fingerprint[:12] in messages[1]

    def test_eviction(self):
        cache = MetricCache(capacity=1)

        cache.get_or_compute("average_body", create_test_window(100.0), 10, CountingCompute())
        cache.get_or_compute("average_body", create_test_window(200.0), 10, CountingCompute())

        messages = self.messages()
        assert [m.split()[0] for m in messages] == ["Cache", "Cache", "Evicted"]
        assert messages[-1].startswith("Evicted average_body/10")
