"""
Unit tests for multi-candlestick pattern recognition.

Windows are written newest first: ``[w0, w1, w2, ...]`` where ``w0`` is the
bar that completes the formation.
"""

from typing import List

import pytest

from candela.models.market_data import Bar, BarWindow
from candela.patterns.catalog import build_default_catalog
from candela.patterns.evaluator import PatternEvaluator
from candela.patterns.metrics import MetricLibrary
from candela.patterns.pattern_config import PatternDetectionConfig
from candela.patterns.predicates import BLACK, large_body


def create_test_bar(open_price: float, high: float, low: float, close: float) -> Bar:
    """Create a test bar with specified OHLC values."""
    return Bar(open=open_price, high=high, low=low, close=close)


def large_white() -> Bar:
    return create_test_bar(100, 111, 99, 110)


def large_black() -> Bar:
    return create_test_bar(110, 111, 99, 100)


def trend_bars(closes: List[float]) -> List[Bar]:
    """Small filler bars, newest first, closing at the given prices."""
    return [create_test_bar(c - 1, c + 0.5, c - 1.5, c) for c in closes]


@pytest.fixture
def evaluator() -> PatternEvaluator:
    return PatternEvaluator()


class TestHaramiPatterns:
    """Test Harami and Harami Cross detection."""

    def test_bullish_harami(self, evaluator):
        window = [create_test_bar(103, 107, 102, 106), large_black()]

        assert evaluator.test_pattern("BULLISH_HARAMI", window)
        assert not evaluator.test_pattern("BEARISH_HARAMI", window)

    def test_bearish_harami(self, evaluator):
        window = [create_test_bar(106, 107, 102, 103), large_white()]

        assert evaluator.test_pattern("BEARISH_HARAMI", window)
        assert not evaluator.test_pattern("BULLISH_HARAMI", window)

    def test_harami_body_must_be_contained(self, evaluator):
        window = [create_test_bar(103, 112, 102, 111), large_black()]

        assert not evaluator.test_pattern("BULLISH_HARAMI", window)

    def test_harami_needs_large_first_body(self, evaluator):
        small_black = create_test_bar(110, 115, 95, 100)  # body 10 of range 20
        window = [create_test_bar(103, 107, 102, 106), small_black]

        assert not evaluator.test_pattern("BULLISH_HARAMI", window)

    def test_bullish_harami_cross(self, evaluator):
        window = [create_test_bar(105, 106, 104, 105), large_black()]

        assert evaluator.test_pattern("BULLISH_HARAMI_CROSS", window)
        assert not evaluator.test_pattern("BULLISH_HARAMI", window)

    def test_bearish_harami_cross(self, evaluator):
        window = [create_test_bar(105, 106, 104, 105), large_white()]

        assert evaluator.test_pattern("BEARISH_HARAMI_CROSS", window)
        assert not evaluator.test_pattern("BULLISH_HARAMI_CROSS", window)

    def test_single_bar_is_never_harami(self, evaluator):
        assert not evaluator.test_pattern("BULLISH_HARAMI_CROSS", [create_test_bar(105, 106, 104, 105)])


class TestEngulfingPatterns:
    """Test Engulfing detection."""

    def test_bullish_engulfing(self, evaluator):
        window = [create_test_bar(99, 105, 98, 104), create_test_bar(102, 103, 99, 100)]

        assert evaluator.test_pattern("ENGULFING_BULLISH", window)
        assert not evaluator.test_pattern("ENGULFING_BEARISH_LINE", window)

    def test_bearish_engulfing(self, evaluator):
        window = [create_test_bar(103, 104, 97, 98), create_test_bar(100, 103, 99, 102)]

        assert evaluator.test_pattern("ENGULFING_BEARISH_LINE", window)
        assert not evaluator.test_pattern("ENGULFING_BULLISH", window)

    def test_partial_cover_is_not_engulfing(self, evaluator):
        window = [create_test_bar(101, 105, 98, 104), create_test_bar(102, 103, 99, 100)]

        assert not evaluator.test_pattern("ENGULFING_BULLISH", window)

    def test_same_colour_is_not_engulfing(self, evaluator):
        window = [create_test_bar(99, 105, 98, 104), create_test_bar(100, 103, 99, 102)]

        assert not evaluator.test_pattern("ENGULFING_BULLISH", window)


class TestPenetrationPatterns:
    """Test Dark Cloud Cover, Piercing Line and On Neckline."""

    def test_dark_cloud_cover(self, evaluator):
        window = [create_test_bar(112, 113, 103, 104), large_white()]

        assert evaluator.test_pattern("DARK_CLOUD_COVER", window)

    def test_dark_cloud_cover_shallow_close(self, evaluator):
        window = [create_test_bar(112, 113, 105, 106), large_white()]

        assert not evaluator.test_pattern("DARK_CLOUD_COVER", window)

    def test_dark_cloud_cover_needs_gap(self, evaluator):
        window = [create_test_bar(110.5, 111, 103, 104), large_white()]

        assert not evaluator.test_pattern("DARK_CLOUD_COVER", window)

    def test_piercing_line(self, evaluator):
        window = [create_test_bar(98, 107, 97, 106), large_black()]

        assert evaluator.test_pattern("PIERCING_LINE", window)
        assert not evaluator.test_pattern("ON_NECKLINE", window)

    def test_piercing_line_close_above_first_open(self, evaluator):
        window = [create_test_bar(98, 112, 97, 111), large_black()]

        assert not evaluator.test_pattern("PIERCING_LINE", window)

    def test_on_neckline(self, evaluator):
        window = [create_test_bar(97, 99.5, 96.5, 99.3), large_black()]

        assert evaluator.test_pattern("ON_NECKLINE", window)
        assert not evaluator.test_pattern("PIERCING_LINE", window)


class TestTweezerPatterns:
    """Test Tweezer Tops and Bottoms, which read the trend before the pair."""

    def test_tweezer_tops(self, evaluator):
        pair = [create_test_bar(110, 111, 105, 106), create_test_bar(106, 111, 105, 110)]
        window = pair + trend_bars([104, 102, 100, 98, 96, 94])

        assert evaluator.test_pattern("TWEEZER_TOPS", window)
        assert not evaluator.test_pattern("TWEEZER_BOTTOMS", window)

    def test_tweezer_tops_needs_rising_trend(self, evaluator):
        pair = [create_test_bar(110, 111, 105, 106), create_test_bar(106, 111, 105, 110)]
        window = pair + trend_bars([94, 96, 98, 100, 102, 104])

        assert not evaluator.test_pattern("TWEEZER_TOPS", window)

    def test_tweezer_tops_needs_matching_highs(self, evaluator):
        pair = [create_test_bar(110, 112, 105, 106), create_test_bar(106, 111, 105, 110)]
        window = pair + trend_bars([104, 102, 100, 98, 96, 94])

        assert not evaluator.test_pattern("TWEEZER_TOPS", window)

    def test_tweezer_bottoms(self, evaluator):
        pair = [create_test_bar(100, 105, 99, 104), create_test_bar(104, 105, 99, 100)]
        window = pair + trend_bars([104, 106, 108, 110, 112, 114])

        assert evaluator.test_pattern("TWEEZER_BOTTOMS", window)

    def test_tweezer_needs_history(self, evaluator):
        pair = [create_test_bar(100, 105, 99, 104), create_test_bar(104, 105, 99, 100)]
        window = pair + trend_bars([104, 106, 108, 110, 112])

        assert not evaluator.test_pattern("TWEEZER_BOTTOMS", window)


class TestGapPatterns:
    """Test Rising/Falling Window and Doji Star."""

    def test_rising_window(self, evaluator):
        window = [create_test_bar(102.5, 104, 102, 103.5), create_test_bar(100, 101, 99, 100.5)]

        assert evaluator.test_pattern("RISING_WINDOW", window)
        assert not evaluator.test_pattern("FALLING_WINDOW", window)

    def test_falling_window(self, evaluator):
        window = [create_test_bar(97.5, 98, 96, 96.5), create_test_bar(100, 101, 99, 100.5)]

        assert evaluator.test_pattern("FALLING_WINDOW", window)
        assert not evaluator.test_pattern("RISING_WINDOW", window)

    def test_touching_ranges_are_not_a_window(self, evaluator):
        window = [create_test_bar(101.5, 103, 101, 102), create_test_bar(100, 101, 99, 100.5)]

        assert not evaluator.test_pattern("RISING_WINDOW", window)

    def test_doji_star_after_white(self, evaluator):
        window = [create_test_bar(112, 113, 111, 112), large_white()]

        assert evaluator.test_pattern("DOJI_STAR", window)

    def test_doji_star_after_black(self, evaluator):
        window = [create_test_bar(98, 99, 97, 98), large_black()]

        assert evaluator.test_pattern("DOJI_STAR", window)

    def test_doji_inside_body_is_not_doji_star(self, evaluator):
        window = [create_test_bar(105, 106, 104, 105), large_white()]

        assert not evaluator.test_pattern("DOJI_STAR", window)


class TestStarPatterns:
    """Test Morning/Evening Star variants and Abandoned Baby."""

    def test_morning_star(self, evaluator):
        window = [create_test_bar(99, 107, 98, 106), create_test_bar(98, 99, 96, 97), large_black()]

        assert evaluator.test_pattern("MORNING_STAR", window)
        assert not evaluator.test_pattern("MORNING_DOJI_STAR", window)
        assert not evaluator.test_pattern("EVENING_STAR", window)

    def test_morning_doji_star(self, evaluator):
        window = [create_test_bar(99, 107, 98, 106), create_test_bar(97, 98, 96, 97), large_black()]

        assert evaluator.test_pattern("MORNING_DOJI_STAR", window)

    def test_morning_star_weak_third_bar(self, evaluator):
        window = [create_test_bar(99, 104, 98, 103), create_test_bar(98, 99, 96, 97), large_black()]

        assert not evaluator.test_pattern("MORNING_STAR", window)

    def test_evening_star(self, evaluator):
        window = [create_test_bar(111, 112, 103, 104), create_test_bar(112, 114, 111, 113), large_white()]

        assert evaluator.test_pattern("EVENING_STAR", window)
        assert not evaluator.test_pattern("EVENING_DOJI_STAR", window)
        assert not evaluator.test_pattern("MORNING_STAR", window)

    def test_evening_doji_star(self, evaluator):
        window = [create_test_bar(111, 112, 103, 104), create_test_bar(112, 113, 111, 112), large_white()]

        assert evaluator.test_pattern("EVENING_DOJI_STAR", window)

    def test_bullish_abandoned_baby(self, evaluator):
        window = [create_test_bar(100, 106, 99, 105), create_test_bar(97, 98, 96, 97), large_black()]

        assert evaluator.test_pattern("ABANDONED_BABY", window)

    def test_bearish_abandoned_baby(self, evaluator):
        window = [create_test_bar(110, 111, 104, 105), create_test_bar(113, 114, 112, 113), large_white()]

        assert evaluator.test_pattern("ABANDONED_BABY", window)

    def test_abandoned_baby_needs_gaps(self, evaluator):
        window = [create_test_bar(100, 106, 99, 105), create_test_bar(97, 99.5, 96, 97), large_black()]

        assert not evaluator.test_pattern("ABANDONED_BABY", window)


class TestThreeBarPatterns:
    """Test Two Black Gapping, Three White Soldiers and Three Black Crows."""

    def test_two_black_gapping(self, evaluator):
        window = [
            create_test_bar(106, 107, 102, 103),
            create_test_bar(107, 108, 104, 105),
            create_test_bar(110, 113, 109, 112),
        ]

        assert evaluator.test_pattern("TWO_BLACK_GAPPING", window)

    def test_two_black_gapping_needs_gap(self, evaluator):
        window = [
            create_test_bar(106, 107, 102, 103),
            create_test_bar(107, 110, 104, 105),
            create_test_bar(110, 113, 109, 112),
        ]

        assert not evaluator.test_pattern("TWO_BLACK_GAPPING", window)

    def test_three_white_soldiers(self, evaluator):
        window = [
            create_test_bar(104, 108.5, 103.5, 108),
            create_test_bar(102, 106.5, 101.5, 106),
            create_test_bar(100, 104.5, 99.5, 104),
        ]

        assert evaluator.test_pattern("THREE_WHITE_SOLDIERS", window)
        assert not evaluator.test_pattern("THREE_BLACK_CROWS", window)

    def test_soldiers_must_open_inside_previous_body(self, evaluator):
        window = [
            create_test_bar(106.5, 110.5, 106, 110),
            create_test_bar(102, 106.5, 101.5, 106),
            create_test_bar(100, 104.5, 99.5, 104),
        ]

        assert not evaluator.test_pattern("THREE_WHITE_SOLDIERS", window)

    def test_three_black_crows(self, evaluator):
        window = [
            create_test_bar(104, 104.5, 99.5, 100),
            create_test_bar(106, 106.5, 101.5, 102),
            create_test_bar(108, 108.5, 103.5, 104),
        ]

        assert evaluator.test_pattern("THREE_BLACK_CROWS", window)
        assert not evaluator.test_pattern("THREE_WHITE_SOLDIERS", window)


class TestContinuationPatterns:
    """Test Three Line Strike and the Three Methods formations."""

    def test_bullish_three_line_strike(self, evaluator):
        window = [
            create_test_bar(107, 107.5, 98.5, 99),
            create_test_bar(104, 106.5, 103.5, 106),
            create_test_bar(102, 104.5, 101.5, 104),
            create_test_bar(100, 102.5, 99.5, 102),
        ]

        assert evaluator.test_pattern("THREE_LINE_STRIKE", window)

    def test_bearish_three_line_strike(self, evaluator):
        window = [
            create_test_bar(99, 107.5, 98.5, 107),
            create_test_bar(102, 102.5, 99.5, 100),
            create_test_bar(104, 104.5, 101.5, 102),
            create_test_bar(106, 106.5, 103.5, 104),
        ]

        assert evaluator.test_pattern("THREE_LINE_STRIKE", window)

    def test_strike_must_erase_run(self, evaluator):
        window = [
            create_test_bar(107, 107.5, 100.5, 101),
            create_test_bar(104, 106.5, 103.5, 106),
            create_test_bar(102, 104.5, 101.5, 104),
            create_test_bar(100, 102.5, 99.5, 102),
        ]

        assert not evaluator.test_pattern("THREE_LINE_STRIKE", window)
        assert not evaluator.test_pattern("THREE_LINE_STRIKE", window[:3])

    def test_bullish_three_methods(self, evaluator):
        window = [
            create_test_bar(104, 113, 103, 112),
            create_test_bar(105, 106, 103, 104),
            create_test_bar(107, 108, 104, 105),
            create_test_bar(109, 110, 106, 107),
            large_white(),
        ]

        assert evaluator.test_pattern("BULLISH_3_METHOD_FORMATION", window)
        assert not evaluator.test_pattern("BEARISH_3_METHOD_FORMATION", window)

    def test_bearish_three_methods(self, evaluator):
        window = [
            create_test_bar(106, 107, 97, 98),
            create_test_bar(105, 107, 104, 106),
            create_test_bar(103, 106, 102, 105),
            create_test_bar(101, 104, 100, 103),
            large_black(),
        ]

        assert evaluator.test_pattern("BEARISH_3_METHOD_FORMATION", window)

    def test_three_methods_pause_must_stay_inside_range(self, evaluator):
        window = [
            create_test_bar(104, 113, 103, 112),
            create_test_bar(105, 106, 98, 104),
            create_test_bar(107, 108, 104, 105),
            create_test_bar(109, 110, 106, 107),
            large_white(),
        ]

        assert not evaluator.test_pattern("BULLISH_3_METHOD_FORMATION", window)


class TestSharedShapeRules:
    """Multi-bar entries judge colour and shape with the single-bar primitives."""

    @pytest.mark.parametrize("first", [
        create_test_bar(110, 111, 99, 100),   # body 10 of range 12
        create_test_bar(110, 113, 97, 100),   # body 10 of range 16
        create_test_bar(110, 114, 96, 100),   # body 10 of range 18
        create_test_bar(110, 115, 95, 100),   # body 10 of range 20
        create_test_bar(100, 111, 99, 110),   # white
    ])
    def test_harami_first_bar_follows_large_body(self, evaluator, first):
        config = PatternDetectionConfig()
        large_black_first = BLACK & large_body(config.harami.min_first_body_ratio)
        second = create_test_bar(103, 107, 102, 106)

        expected = large_black_first(BarWindow([first]), MetricLibrary())

        assert evaluator.test_pattern("BULLISH_HARAMI", [second, first]) == expected

    def test_configured_doji_ratio_reaches_harami(self):
        window = [create_test_bar(105, 106, 104, 105.5), large_black()]  # body 0.5 of range 2
        config = PatternDetectionConfig()
        config.doji.max_body_ratio = 0.3
        loose = PatternEvaluator(config=config)

        assert PatternEvaluator().test_pattern("BULLISH_HARAMI", window)
        assert not PatternEvaluator().test_pattern("BULLISH_HARAMI_CROSS", window)
        assert loose.test_pattern("BULLISH_HARAMI_CROSS", window)
        assert not loose.test_pattern("BULLISH_HARAMI", window)

    def test_composed_entries_declare_history(self):
        catalog = build_default_catalog()

        assert catalog.get("ENGULFING_BULLISH").min_bars == 2
        assert catalog.get("DOJI_STAR").min_bars == 2
        assert catalog.get("ABANDONED_BABY").min_bars == 3
        assert catalog.get("THREE_WHITE_SOLDIERS").min_bars == 3
        assert catalog.get("BEARISH_3_METHOD_FORMATION").min_bars == 5
        assert catalog.get("DOJI_STAR").test.name == "DOJI_STAR"
