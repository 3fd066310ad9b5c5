"""
Single Candlestick Patterns

Catalog entries decided by the current bar alone, sometimes read against
recent volatility (long line), recent bodies (long candle) or the trend
leading into the bar:

- Long/short white and black candles
- Doji family: Doji, Dragonfly, Gravestone, Long-legged
- Hammer family: Hammer, Hanging Man, Inverted Hammer, Inverted Black
  Hammer, Shooting Star
- Shadow shapes: Long Lower/Upper Shadow, Shaven Bottom/Head, Marubozu
- Spinning Top, White Body

Every entry is a ``Predicate`` built from the primitives in
``predicates``; thresholds come from ``PatternDetectionConfig``.
"""

from typing import List

from .catalog import PatternDefinition
from .metrics import body, lower_shadow, size, upper_shadow
from .pattern_config import PatternDetectionConfig
from .predicates import (
    ALL_SHADOW,
    ALL_SHADOW_LARGER_THAN_BODY,
    BLACK,
    HAS_BODY,
    LOWER_SHADOW,
    NO_SHADOW_LARGER_THAN_BODY,
    UPPER_SHADOW,
    WHITE,
    bar_predicate,
    doji,
    falling_trend,
    long_candle,
    long_line,
    rising_trend,
)


def base_candle_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """
    Long White/Black Candle and White/Black Candle.

    Formation:
    - White (or black) body with both upper and lower shadows
    - Neither shadow longer than the body
    - Appears as a long line
    - Long variants: body at least 3x the average body of the last 10 bars;
      plain variants: not a long candle, so each pair is mutually exclusive
    """
    is_long_line = long_line(config.long_line.period, config.long_line.min_size_ratio)
    is_long_candle = long_candle(config.long_candle.period, config.long_candle.min_body_multiple)

    shaped = ALL_SHADOW & NO_SHADOW_LARGER_THAN_BODY

    return [
        PatternDefinition(
            "LONG_WHITE_CANDLE",
            WHITE & shaped & is_long_candle & is_long_line,
            "White long line whose body dwarfs recent bodies",
        ),
        PatternDefinition(
            "LONG_BLACK_CANDLE",
            BLACK & shaped & is_long_candle & is_long_line,
            "Black long line whose body dwarfs recent bodies",
        ),
        PatternDefinition(
            "WHITE_CANDLE",
            WHITE & shaped & is_long_line & ~is_long_candle,
            "White long line that is not a long candle",
        ),
        PatternDefinition(
            "BLACK_CANDLE",
            BLACK & shaped & is_long_line & ~is_long_candle,
            "Black long line that is not a long candle",
        ),
    ]


def doji_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Open and close (almost) equal; subtypes split on where the shadows sit."""
    cfg = config.doji
    is_doji = doji(cfg.max_body_ratio)
    is_long_line = long_line(config.long_line.period, config.long_line.min_size_ratio)

    @bar_predicate(name="DRAGONFLY_SHADOWS")
    def dragonfly_shadows(bar) -> bool:
        return (upper_shadow(bar) <= cfg.max_short_shadow * size(bar)
                and lower_shadow(bar) >= cfg.min_long_shadow * size(bar))

    @bar_predicate(name="GRAVESTONE_SHADOWS")
    def gravestone_shadows(bar) -> bool:
        return (lower_shadow(bar) <= cfg.max_short_shadow * size(bar)
                and upper_shadow(bar) >= cfg.min_long_shadow * size(bar))

    @bar_predicate(name="LONG_LEGS")
    def long_legs(bar) -> bool:
        return (upper_shadow(bar) >= cfg.min_long_legged_shadow * size(bar)
                and lower_shadow(bar) >= cfg.min_long_legged_shadow * size(bar))

    return [
        PatternDefinition("DOJI", is_doji, "Real body negligible against the range"),
        PatternDefinition(
            "DRAGONFLY_DOJI",
            is_doji & dragonfly_shadows,
            "Doji at the top of the range with a long lower shadow",
        ),
        PatternDefinition(
            "GRAVESTONE_DOJI",
            is_doji & gravestone_shadows,
            "Doji at the bottom of the range with a long upper shadow",
        ),
        PatternDefinition(
            "LONG_LEGGED_DOJI",
            is_doji & long_legs & is_long_line,
            "Doji with long shadows on both sides appearing as a long line",
        ),
    ]


def hammer_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """
    Small body at one end of the range with a long shadow at the other.

    Shape alone does not separate Hammer from Hanging Man (or Inverted
    Hammer from Shooting Star); the trend leading into the bar does.
    """
    cfg = config.hammer
    falling = falling_trend(config.trend.lookback)
    rising = rising_trend(config.trend.lookback)

    @bar_predicate(name="HAMMER_SHAPE")
    def hammer_shape(bar) -> bool:
        return (body(bar) > 0
                and lower_shadow(bar) >= cfg.min_shadow_body_multiple * body(bar)
                and upper_shadow(bar) <= cfg.max_opposite_shadow * size(bar))

    @bar_predicate(name="INVERTED_HAMMER_SHAPE")
    def inverted_shape(bar) -> bool:
        return (body(bar) > 0
                and upper_shadow(bar) >= cfg.min_shadow_body_multiple * body(bar)
                and lower_shadow(bar) <= cfg.max_opposite_shadow * size(bar))

    return [
        PatternDefinition("HAMMER", hammer_shape & falling, "Hammer shape after falling closes"),
        PatternDefinition("HANGING_MAN", hammer_shape & rising, "Hammer shape after rising closes"),
        PatternDefinition(
            "INVERTED_HAMMER",
            inverted_shape & WHITE & falling,
            "White inverted hammer shape after falling closes",
        ),
        PatternDefinition(
            "INVERTED_BLACK_HAMMER",
            inverted_shape & BLACK & falling,
            "Black inverted hammer shape after falling closes",
        ),
        PatternDefinition(
            "SHOOTING_STAR",
            inverted_shape & rising,
            "Inverted hammer shape after rising closes",
        ),
    ]


def shadow_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Patterns defined by the presence, absence or length of shadows."""
    min_shadow = config.long_shadow.min_shadow_ratio
    max_marubozu_shadow = config.marubozu.max_shadow_ratio
    is_long_line = long_line(config.long_line.period, config.long_line.min_size_ratio)

    long_lower = bar_predicate(
        lambda bar: size(bar) > 0 and lower_shadow(bar) >= min_shadow * size(bar),
        name="LONG_LOWER",
    )
    long_upper = bar_predicate(
        lambda bar: size(bar) > 0 and upper_shadow(bar) >= min_shadow * size(bar),
        name="LONG_UPPER",
    )
    shaven = bar_predicate(
        lambda bar: (upper_shadow(bar) <= max_marubozu_shadow * size(bar)
                     and lower_shadow(bar) <= max_marubozu_shadow * size(bar)),
        name="SHAVEN",
    )

    return [
        PatternDefinition("LONG_LOWER_SHADOW", long_lower, "Lower shadow covers most of the range"),
        PatternDefinition("LONG_UPPER_SHADOW", long_upper, "Upper shadow covers most of the range"),
        PatternDefinition(
            "MARUBOZU",
            HAS_BODY & shaven & is_long_line,
            "Long line made of body only",
        ),
        PatternDefinition(
            "SHAVEN_BOTTOM",
            HAS_BODY & ~LOWER_SHADOW & UPPER_SHADOW,
            "No lower shadow",
        ),
        PatternDefinition(
            "SHAVEN_HEAD",
            HAS_BODY & ~UPPER_SHADOW & LOWER_SHADOW,
            "No upper shadow",
        ),
    ]


def body_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Spinning Top and White Body."""
    is_doji = doji(config.doji.max_body_ratio)
    is_short_line = ~long_line(config.long_line.period, config.long_line.min_size_ratio)
    min_white_body = config.white_body.min_body_ratio

    white_body = WHITE & bar_predicate(
        lambda bar: body(bar) >= min_white_body * size(bar),
        name="DOMINANT_BODY",
    )

    return [
        PatternDefinition(
            "SPINNING_TOP",
            ~is_doji & ALL_SHADOW_LARGER_THAN_BODY & is_short_line,
            "Short line with a small body and longer shadows on both sides",
        ),
        PatternDefinition("WHITE_BODY", white_body, "White body covering most of the range"),
    ]


def single_candlestick_patterns(config: PatternDetectionConfig) -> List[PatternDefinition]:
    """Every single-bar catalog entry, in catalog order."""
    definitions: List[PatternDefinition] = []
    for build in (base_candle_patterns, doji_patterns, hammer_patterns, shadow_patterns, body_patterns):
        definitions.extend(build(config))
    return definitions

