"""
Multi-Candlestick Patterns

Catalog entries that read two to five bars. ``w[0]`` is the current bar,
``w[1]`` the one before it, and so on.

- Two bars: Harami (Cross), Engulfing, Piercing Line, Dark Cloud Cover,
  On Neckline, Tweezer Tops/Bottoms, Rising/Falling Window, Doji Star
- Three bars: Morning/Evening (Doji) Star, Abandoned Baby, Two Black
  Gapping, Three White Soldiers, Three Black Crows
- Four and five bars: Three Line Strike, Rising/Falling Three Methods

Colour and shape conditions on older bars are primitives moved back with
``.at(n)``. Comparisons between bars are ``window_predicate`` rules that
declare how many bars they read; a shorter window never matches.
"""

from typing import List

from ..models.market_data import Bar
from .catalog import PatternDefinition
from .metrics import body, size
from .pattern_config import PatternDetectionConfig
from .predicates import (
    BLACK,
    HAS_BODY,
    WHITE,
    all_of,
    doji,
    falling_trend,
    large_body,
    rising_trend,
    window_predicate,
)


def _body_inside(inner: Bar, outer: Bar) -> bool:
    return inner.body_top <= outer.body_top and inner.body_bottom >= outer.body_bottom


def _range_inside(inner: Bar, outer: Bar) -> bool:
    return inner.high <= outer.high and inner.low >= outer.low


def harami_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """
    Harami and Harami Cross.

    Formation:
    - Large first bar
    - Second bar's body sits inside the first body
    - Harami: opposite colour, body at most 60% of the first body
    - Harami Cross: second bar is a doji
    """
    cfg = config.harami
    is_doji = doji(config.doji.max_body_ratio)
    large_first = large_body(cfg.min_first_body_ratio).at(1)

    @window_predicate(2, "SMALL_BODY_INSIDE")
    def small_body_inside(w, m) -> bool:
        return _body_inside(w[0], w[1]) and body(w[0]) <= cfg.max_containment_ratio * body(w[1])

    @window_predicate(2, "BODY_INSIDE")
    def body_inside(w, m) -> bool:
        return _body_inside(w[0], w[1])

    harami = HAS_BODY & ~is_doji & small_body_inside
    cross = is_doji & body_inside

    return [
        PatternDefinition(
            "BULLISH_HARAMI",
            (BLACK.at(1) & large_first & WHITE & harami).named("BULLISH_HARAMI"),
            "Small white body inside a large black body",
        ),
        PatternDefinition(
            "BEARISH_HARAMI",
            (WHITE.at(1) & large_first & BLACK & harami).named("BEARISH_HARAMI"),
            "Small black body inside a large white body",
        ),
        PatternDefinition(
            "BULLISH_HARAMI_CROSS",
            (BLACK.at(1) & large_first & cross).named("BULLISH_HARAMI_CROSS"),
            "Doji inside a large black body",
        ),
        PatternDefinition(
            "BEARISH_HARAMI_CROSS",
            (WHITE.at(1) & large_first & cross).named("BEARISH_HARAMI_CROSS"),
            "Doji inside a large white body",
        ),
    ]


def engulfing_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """The current body covers the previous, opposite-coloured body."""
    min_ratio = config.engulfing.min_engulfing_ratio

    @window_predicate(2, "ENGULFS")
    def engulfs(w, m) -> bool:
        first, second = w[1], w[0]
        return _body_inside(first, second) and body(second) > body(first) * min_ratio

    return [
        PatternDefinition(
            "ENGULFING_BULLISH",
            (BLACK.at(1) & WHITE & engulfs).named("ENGULFING_BULLISH"),
            "White body engulfing the previous black body",
        ),
        PatternDefinition(
            "ENGULFING_BEARISH_LINE",
            (WHITE.at(1) & BLACK & engulfs).named("ENGULFING_BEARISH_LINE"),
            "Black body engulfing the previous white body",
        ),
    ]


def penetration_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """
    Dark Cloud Cover, Piercing Line and On Neckline.

    The current bar gaps beyond the previous bar's extreme and closes back
    into (or, for On Neckline, just at) the previous range.
    """
    cfg = config.penetration
    neck = config.neckline

    @window_predicate(2, "OPENS_ABOVE_CLOSES_INTO_BODY")
    def covers(w, m) -> bool:
        first, second = w[1], w[0]
        return (second.open > first.high
                and first.open < second.close <= first.close - cfg.min_penetration * body(first))

    @window_predicate(2, "OPENS_BELOW_CLOSES_INTO_BODY")
    def pierces(w, m) -> bool:
        first, second = w[1], w[0]
        return (second.open < first.low
                and first.close + cfg.min_penetration * body(first) <= second.close < first.open)

    @window_predicate(2, "OPENS_BELOW_CLOSES_AT_LOW")
    def meets_low(w, m) -> bool:
        first, second = w[1], w[0]
        return (second.open < first.low
                and abs(second.close - first.low) <= neck.max_close_distance * size(first))

    large_white_first = (WHITE & large_body(cfg.min_first_body_ratio)).at(1)
    large_black_first = (BLACK & large_body(cfg.min_first_body_ratio)).at(1)
    neck_first = (BLACK & large_body(neck.min_first_body_ratio)).at(1)

    return [
        PatternDefinition(
            "DARK_CLOUD_COVER",
            (large_white_first & BLACK & covers).named("DARK_CLOUD_COVER"),
            "Black bar opening above and closing deep into a white body",
        ),
        PatternDefinition(
            "PIERCING_LINE",
            (large_black_first & WHITE & pierces).named("PIERCING_LINE"),
            "White bar opening below and closing deep into a black body",
        ),
        PatternDefinition(
            "ON_NECKLINE",
            (neck_first & WHITE & meets_low).named("ON_NECKLINE"),
            "White bar opening below and closing at the previous low",
        ),
    ]


def tweezer_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Matching highs after a rise, or matching lows after a fall."""
    max_diff = config.tweezer.max_extreme_diff
    lookback = config.trend.lookback

    @window_predicate(2, "MATCHING_HIGHS")
    def matching_highs(w, m) -> bool:
        first, second = w[1], w[0]
        return abs(second.high - first.high) <= max_diff * max(size(first), size(second))

    @window_predicate(2, "MATCHING_LOWS")
    def matching_lows(w, m) -> bool:
        first, second = w[1], w[0]
        return abs(second.low - first.low) <= max_diff * max(size(first), size(second))

    return [
        PatternDefinition(
            "TWEEZER_TOPS",
            (WHITE.at(1) & BLACK & matching_highs & rising_trend(lookback).at(1)).named("TWEEZER_TOPS"),
            "White then black bar with matching highs after rising closes",
        ),
        PatternDefinition(
            "TWEEZER_BOTTOMS",
            (BLACK.at(1) & WHITE & matching_lows & falling_trend(lookback).at(1)).named("TWEEZER_BOTTOMS"),
            "Black then white bar with matching lows after falling closes",
        ),
    ]


def gap_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Rising/Falling Window and Doji Star."""
    large_first = large_body(config.star.min_first_body_ratio).at(1)
    is_doji = doji(config.doji.max_body_ratio)

    @window_predicate(2, "RISING_WINDOW")
    def rising_window(w, m) -> bool:
        return w[0].low > w[1].high

    @window_predicate(2, "FALLING_WINDOW")
    def falling_window(w, m) -> bool:
        return w[0].high < w[1].low

    @window_predicate(2, "BODY_GAPS_UP")
    def body_gaps_up(w, m) -> bool:
        return w[0].body_bottom > w[1].body_top

    @window_predicate(2, "BODY_GAPS_DOWN")
    def body_gaps_down(w, m) -> bool:
        return w[0].body_top < w[1].body_bottom

    doji_star = large_first & is_doji & (
        (WHITE.at(1) & body_gaps_up) | (BLACK.at(1) & body_gaps_down)
    )

    return [
        PatternDefinition("RISING_WINDOW", rising_window, "Gap up between consecutive ranges"),
        PatternDefinition("FALLING_WINDOW", falling_window, "Gap down between consecutive ranges"),
        PatternDefinition("DOJI_STAR", doji_star.named("DOJI_STAR"), "Doji gapping away from a large body"),
    ]


def star_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """
    Morning/Evening Star and their doji variants, Abandoned Baby.

    Formation (Morning Star):
    - Large black first bar
    - Small star whose body gaps below the first body
    - White third bar closing at least halfway into the first body

    Evening Star mirrors it. The doji variants require the star to be a doji.
    """
    cfg = config.star
    is_doji = doji(config.doji.max_body_ratio)
    large_first = large_body(cfg.min_first_body_ratio).at(2)

    @window_predicate(3, "SMALL_STAR")
    def small_star(w, m) -> bool:
        return body(w[1]) <= cfg.max_star_body_ratio * body(w[2])

    @window_predicate(3, "STAR_BELOW_RECOVERY")
    def star_below_recovery(w, m) -> bool:
        first, star, last = w[2], w[1], w[0]
        return (star.body_top < first.body_bottom
                and last.close >= first.close + cfg.min_penetration * body(first))

    @window_predicate(3, "STAR_ABOVE_DECLINE")
    def star_above_decline(w, m) -> bool:
        first, star, last = w[2], w[1], w[0]
        return (star.body_bottom > first.body_top
                and last.close <= first.close - cfg.min_penetration * body(first))

    @window_predicate(3, "ISLAND_BELOW")
    def island_below(w, m) -> bool:
        return w[1].high < w[2].low and w[0].low > w[1].high

    @window_predicate(3, "ISLAND_ABOVE")
    def island_above(w, m) -> bool:
        return w[1].low > w[2].high and w[0].high < w[1].low

    morning = BLACK.at(2) & large_first & WHITE & star_below_recovery
    evening = WHITE.at(2) & large_first & BLACK & star_above_decline
    abandoned_baby = is_doji.at(1) & (
        (BLACK.at(2) & WHITE & island_below) | (WHITE.at(2) & BLACK & island_above)
    )

    return [
        PatternDefinition(
            "MORNING_STAR",
            (morning & small_star).named("MORNING_STAR"),
            "Large black bar, small star gapping down, strong white bar",
        ),
        PatternDefinition(
            "MORNING_DOJI_STAR",
            (morning & is_doji.at(1)).named("MORNING_DOJI_STAR"),
            "Morning star whose star is a doji",
        ),
        PatternDefinition(
            "EVENING_STAR",
            (evening & small_star).named("EVENING_STAR"),
            "Large white bar, small star gapping up, strong black bar",
        ),
        PatternDefinition(
            "EVENING_DOJI_STAR",
            (evening & is_doji.at(1)).named("EVENING_DOJI_STAR"),
            "Evening star whose star is a doji",
        ),
        PatternDefinition(
            "ABANDONED_BABY",
            abandoned_baby.named("ABANDONED_BABY"),
            "Doji isolated by gaps on both sides, reversed by the next bar",
        ),
    ]


def three_bar_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Two Black Gapping, Three White Soldiers and Three Black Crows."""
    min_body = config.soldiers.min_body_ratio
    soldier = WHITE & large_body(min_body)
    crow = BLACK & large_body(min_body)

    @window_predicate(3, "GAP_DOWN_LOWER_HIGH")
    def gap_down_lower_high(w, m) -> bool:
        return w[1].high < w[2].low and w[0].high < w[1].high

    def opens_inside_previous(bars) -> bool:
        return all(prev.body_bottom <= bar.open <= prev.body_top for prev, bar in zip(bars, bars[1:]))

    @window_predicate(3, "CLIMBING_CLOSES")
    def climbing_closes(w, m) -> bool:
        bars = (w[2], w[1], w[0])
        return bars[0].close < bars[1].close < bars[2].close and opens_inside_previous(bars)

    @window_predicate(3, "SINKING_CLOSES")
    def sinking_closes(w, m) -> bool:
        bars = (w[2], w[1], w[0])
        return bars[0].close > bars[1].close > bars[2].close and opens_inside_previous(bars)

    return [
        PatternDefinition(
            "TWO_BLACK_GAPPING",
            (BLACK.at(1) & BLACK & gap_down_lower_high).named("TWO_BLACK_GAPPING"),
            "Two black bars after a gap down",
        ),
        PatternDefinition(
            "THREE_WHITE_SOLDIERS",
            all_of(soldier.at(2), soldier.at(1), soldier, climbing_closes).named("THREE_WHITE_SOLDIERS"),
            "Three rising white bars opening inside the prior body",
        ),
        PatternDefinition(
            "THREE_BLACK_CROWS",
            all_of(crow.at(2), crow.at(1), crow, sinking_closes).named("THREE_BLACK_CROWS"),
            "Three falling black bars opening inside the prior body",
        ),
    ]


def continuation_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Three Line Strike and the Three Methods formations."""
    large_first = large_body(config.methods.min_first_body_ratio).at(4)

    @window_predicate(4, "RISING_RUN_STRUCK_DOWN")
    def rising_run_struck_down(w, m) -> bool:
        return (w[3].close < w[2].close < w[1].close
                and w[0].open > w[1].close and w[0].close < w[3].open)

    @window_predicate(4, "FALLING_RUN_STRUCK_UP")
    def falling_run_struck_up(w, m) -> bool:
        return (w[3].close > w[2].close > w[1].close
                and w[0].open < w[1].close and w[0].close > w[3].open)

    @window_predicate(5, "PAUSE_INSIDE_FIRST")
    def pause_inside_first(w, m) -> bool:
        first = w[4]
        return all(body(w[k]) < body(first) and _range_inside(w[k], first) for k in (3, 2, 1))

    @window_predicate(5, "CLOSES_ABOVE_FIRST")
    def closes_above_first(w, m) -> bool:
        return w[0].close > w[4].close

    @window_predicate(5, "CLOSES_BELOW_FIRST")
    def closes_below_first(w, m) -> bool:
        return w[0].close < w[4].close

    white_run = all_of(WHITE.at(3), WHITE.at(2), WHITE.at(1))
    black_run = all_of(BLACK.at(3), BLACK.at(2), BLACK.at(1))
    three_line_strike = (
        (white_run & BLACK & rising_run_struck_down) | (black_run & WHITE & falling_run_struck_up)
    )

    return [
        PatternDefinition(
            "THREE_LINE_STRIKE",
            three_line_strike.named("THREE_LINE_STRIKE"),
            "Three-bar run wiped out by one opposite bar",
        ),
        PatternDefinition(
            "BULLISH_3_METHOD_FORMATION",
            all_of(WHITE.at(4), large_first, pause_inside_first, WHITE, closes_above_first)
            .named("BULLISH_3_METHOD_FORMATION"),
            "Rising three methods: pause inside a large white bar, then a new high close",
        ),
        PatternDefinition(
            "BEARISH_3_METHOD_FORMATION",
            all_of(BLACK.at(4), large_first, pause_inside_first, BLACK, closes_below_first)
            .named("BEARISH_3_METHOD_FORMATION"),
            "Falling three methods: pause inside a large black bar, then a new low close",
        ),
    ]


def multi_candlestick_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Every multi-bar catalog entry, in catalog order."""
    definitions: List[PatternDefinition] = []
    for build in (
        harami_patterns,
        engulfing_patterns,
        penetration_patterns,
        tweezer_patterns,
        gap_patterns,
        star_patterns,
        three_bar_patterns,
        continuation_patterns,
    ):
        definitions.extend(build(config))
    return definitions
