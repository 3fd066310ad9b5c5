"""
Predicate Algebra

Composable boolean tests over a newest-first ``BarWindow``. Every
predicate is called as ``predicate(window, metrics)`` where ``metrics`` is
the ``MetricLibrary`` supplying cached aggregates.

Composition:
    a & b       both hold
    a | b       either holds
    ~a          a does not hold
    a.at(n)     a held on the window as it stood n bars ago

Each predicate declares ``min_bars``. On a shorter window it answers
False without evaluating anything. A negation is plain boolean negation
with ``min_bars`` of 1: below its operand's minimum the operand answers
False, so the negation answers True.
"""

from functools import reduce
from typing import Callable, Optional

from ..models.market_data import Bar, BarWindow
from .metrics import MetricLibrary, body, lower_shadow, size, upper_shadow

WindowTest = Callable[[BarWindow, MetricLibrary], bool]


class Predicate:
    """A named, pure boolean test over a window."""

    __slots__ = ("name", "min_bars", "_test")

    def __init__(self, test: WindowTest, name: str, min_bars: int = 1):
        self._test = test
        self.name = name
        self.min_bars = max(int(min_bars), 1)

    def __call__(self, window: BarWindow, metrics: MetricLibrary) -> bool:
        if len(window) < self.min_bars:
            return False
        return bool(self._test(window, metrics))

    def __and__(self, other: "Predicate") -> "Predicate":
        return Predicate(
            lambda w, m: self(w, m) and other(w, m),
            name=f"({self.name} & {other.name})",
            min_bars=max(self.min_bars, other.min_bars),
        )

    def __or__(self, other: "Predicate") -> "Predicate":
        return Predicate(
            lambda w, m: self(w, m) or other(w, m),
            name=f"({self.name} | {other.name})",
            min_bars=min(self.min_bars, other.min_bars),
        )

    def __invert__(self) -> "Predicate":
        return Predicate(
            lambda w, m: not self(w, m),
            name=f"~{self.name}",
            min_bars=1,
        )

    def at(self, offset: int) -> "Predicate":
        """Evaluate on the bar ``offset`` positions back."""
        if offset == 0:
            return self
        return Predicate(
            lambda w, m: self(w.shift(offset), m),
            name=f"{self.name}@{offset}",
            min_bars=self.min_bars + offset,
        )

    def named(self, name: str) -> "Predicate":
        """Same test under a new name."""
        return Predicate(self._test, name=name, min_bars=self.min_bars)

    def __repr__(self) -> str:
        return f"Predicate({self.name}, min_bars={self.min_bars})"


def all_of(*predicates: Predicate) -> Predicate:
    """Conjunction of any number of predicates."""
    return reduce(lambda a, b: a & b, predicates)


def any_of(*predicates: Predicate) -> Predicate:
    """Disjunction of any number of predicates."""
    return reduce(lambda a, b: a | b, predicates)


def bar_predicate(fn: Optional[Callable[[Bar], bool]] = None, *, name: Optional[str] = None):
    """
    Lift a ``Bar -> bool`` test onto the current bar of a window.

    Usable as ``@bar_predicate`` or ``@bar_predicate(name="...")``.
    """
    def wrap(test: Callable[[Bar], bool]) -> Predicate:
        return Predicate(lambda w, m: test(w.current), name=name or test.__name__.upper(), min_bars=1)

    if fn is not None:
        return wrap(fn)
    return wrap


def window_predicate(min_bars: int = 1, name: Optional[str] = None):
    """Turn a ``(window, metrics) -> bool`` function into a Predicate."""
    def wrap(test: WindowTest) -> Predicate:
        return Predicate(test, name=name or test.__name__.upper(), min_bars=min_bars)
    return wrap


# Bar primitives

WHITE = bar_predicate(lambda bar: bar.open < bar.close, name="WHITE")
BLACK = bar_predicate(lambda bar: bar.open > bar.close, name="BLACK")

UPPER_SHADOW = bar_predicate(lambda bar: bar.high > max(bar.open, bar.close), name="UPPER_SHADOW")
LOWER_SHADOW = bar_predicate(lambda bar: bar.low < min(bar.open, bar.close), name="LOWER_SHADOW")

ALL_SHADOW = (UPPER_SHADOW & LOWER_SHADOW).named("ALL_SHADOW")
ANY_SHADOW = (UPPER_SHADOW | LOWER_SHADOW).named("ANY_SHADOW")
NO_SHADOW = (~ANY_SHADOW).named("NO_SHADOW")

UPPER_SHADOW_LARGER_THAN_BODY = (
    UPPER_SHADOW & bar_predicate(lambda bar: upper_shadow(bar) > body(bar), name="UPPER_EXCEEDS_BODY")
).named("UPPER_SHADOW_LARGER_THAN_BODY")

LOWER_SHADOW_LARGER_THAN_BODY = (
    LOWER_SHADOW & bar_predicate(lambda bar: lower_shadow(bar) > body(bar), name="LOWER_EXCEEDS_BODY")
).named("LOWER_SHADOW_LARGER_THAN_BODY")

ALL_SHADOW_LARGER_THAN_BODY = (
    UPPER_SHADOW_LARGER_THAN_BODY & LOWER_SHADOW_LARGER_THAN_BODY
).named("ALL_SHADOW_LARGER_THAN_BODY")

ANY_SHADOW_LARGER_THAN_BODY = (
    UPPER_SHADOW_LARGER_THAN_BODY | LOWER_SHADOW_LARGER_THAN_BODY
).named("ANY_SHADOW_LARGER_THAN_BODY")

NO_SHADOW_LARGER_THAN_BODY = (~ANY_SHADOW_LARGER_THAN_BODY).named("NO_SHADOW_LARGER_THAN_BODY")

HAS_BODY = bar_predicate(lambda bar: body(bar) > 0, name="HAS_BODY")


# Window primitives

def long_line(period: int = 25, min_size_ratio: float = 0.7) -> Predicate:
    """
    Current range is at least ``min_size_ratio`` of the EMA of ranges.

    The EMA (``average_distance``) is the volatility of the last
    ``period`` bars.
    """
    def test(window: BarWindow, metrics: MetricLibrary) -> bool:
        return size(window.current) >= metrics.average_distance(window, period) * min_size_ratio

    return Predicate(test, name="LONG_LINE", min_bars=1)


def long_candle(period: int = 10, min_body_multiple: float = 3.0) -> Predicate:
    """
    Current body is at least ``min_body_multiple`` times the average body.

    Needs ``period`` bars of history.
    """
    def test(window: BarWindow, metrics: MetricLibrary) -> bool:
        return body(window.current) >= metrics.average_body(window, period) * min_body_multiple

    return Predicate(test, name="LONG_CANDLE", min_bars=period)


LONG_LINE = long_line()
SHORT_LINE = (~LONG_LINE).named("SHORT_LINE")
LONG_CANDLE = long_candle()


# Shape helpers

def doji(max_body_ratio: float = 0.1) -> Predicate:
    """Body no larger than ``max_body_ratio`` of a non-zero range."""
    return bar_predicate(
        lambda bar: size(bar) > 0 and body(bar) <= max_body_ratio * size(bar),
        name="DOJI_SHAPE",
    )


def large_body(min_ratio: float) -> Predicate:
    """Body covering at least ``min_ratio`` of a non-zero range."""
    return bar_predicate(
        lambda bar: size(bar) > 0 and body(bar) >= min_ratio * size(bar),
        name="LARGE_BODY",
    )


def rising_trend(lookback: int = 5) -> Predicate:
    """
    Closes were rising into the current bar.

    Compares the close of the previous bar with the close ``lookback``
    bars before it.
    """
    return Predicate(
        lambda w, m: w[1].close > w[1 + lookback].close,
        name="RISING_TREND",
        min_bars=lookback + 2,
    )


def falling_trend(lookback: int = 5) -> Predicate:
    """Closes were falling into the current bar."""
    return Predicate(
        lambda w, m: w[1].close < w[1 + lookback].close,
        name="FALLING_TREND",
        min_bars=lookback + 2,
    )
