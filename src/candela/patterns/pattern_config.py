"""
Pattern Detection Configuration

This module defines all configurable thresholds for candlestick pattern
classification. Ratios are fractions of the bar's range (high - low)
unless a field says otherwise.

The defaults of ``LongLineConfig`` and ``LongCandleConfig`` are the
classic long-line / long-candle rules and drive the four base candle
patterns; change them only deliberately.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

from ..exceptions import InvalidArgument


@dataclass
class LongLineConfig:
    """Range compared against the EMA of recent ranges."""
    period: int = 25
    min_size_ratio: float = 0.7  # of averageDistance


@dataclass
class LongCandleConfig:
    """Body compared against the average body of recent bars."""
    period: int = 10
    min_body_multiple: float = 3.0  # of averageBody


@dataclass
class TrendConfig:
    """Prior trend used to tell apart same-shape patterns."""
    lookback: int = 5  # bars between the compared closes


@dataclass
class DojiConfig:
    """Configuration for the Doji family."""
    max_body_ratio: float = 0.1

    # Subtype classification
    max_short_shadow: float = 0.1
    min_long_shadow: float = 0.6
    min_long_legged_shadow: float = 0.3


@dataclass
class HammerConfig:
    """Hammer, Hanging Man, Inverted Hammer and Shooting Star shapes."""
    min_shadow_body_multiple: float = 2.0  # long shadow vs body
    max_opposite_shadow: float = 0.1


@dataclass
class LongShadowConfig:
    """Configuration for Long Lower/Upper Shadow."""
    min_shadow_ratio: float = 0.66


@dataclass
class MarubozuConfig:
    """Configuration for Marubozu detection."""
    max_shadow_ratio: float = 0.0  # strictly shaven by default


@dataclass
class WhiteBodyConfig:
    """Configuration for White Body detection."""
    min_body_ratio: float = 0.5


@dataclass
class HaramiConfig:
    """Configuration for Harami and Harami Cross."""
    min_first_body_ratio: float = 0.6
    max_containment_ratio: float = 0.6  # second body vs first body


@dataclass
class EngulfingConfig:
    """Configuration for Engulfing detection."""
    min_engulfing_ratio: float = 1.0  # second body must exceed first body times this


@dataclass
class PenetrationConfig:
    """Piercing Line and Dark Cloud Cover."""
    min_first_body_ratio: float = 0.6
    min_penetration: float = 0.5  # of the first body


@dataclass
class NecklineConfig:
    """Configuration for On Neckline."""
    min_first_body_ratio: float = 0.6
    max_close_distance: float = 0.05  # of the first bar's range


@dataclass
class TweezerConfig:
    """Configuration for Tweezer Tops/Bottoms."""
    max_extreme_diff: float = 0.05  # of the larger range


@dataclass
class StarConfig:
    """Morning/Evening (Doji) Star and Doji Star."""
    min_first_body_ratio: float = 0.6
    max_star_body_ratio: float = 0.3  # star body vs first body
    min_penetration: float = 0.5  # third close into the first body


@dataclass
class SoldiersConfig:
    """Three White Soldiers / Three Black Crows."""
    min_body_ratio: float = 0.5


@dataclass
class MethodsConfig:
    """Rising/Falling Three Methods."""
    min_first_body_ratio: float = 0.6


@dataclass
class PatternDetectionConfig:
    """Master configuration for all pattern classification thresholds."""

    long_line: LongLineConfig = field(default_factory=LongLineConfig)
    long_candle: LongCandleConfig = field(default_factory=LongCandleConfig)
    trend: TrendConfig = field(default_factory=TrendConfig)

    doji: DojiConfig = field(default_factory=DojiConfig)
    hammer: HammerConfig = field(default_factory=HammerConfig)
    long_shadow: LongShadowConfig = field(default_factory=LongShadowConfig)
    marubozu: MarubozuConfig = field(default_factory=MarubozuConfig)
    white_body: WhiteBodyConfig = field(default_factory=WhiteBodyConfig)

    harami: HaramiConfig = field(default_factory=HaramiConfig)
    engulfing: EngulfingConfig = field(default_factory=EngulfingConfig)
    penetration: PenetrationConfig = field(default_factory=PenetrationConfig)
    neckline: NecklineConfig = field(default_factory=NecklineConfig)
    tweezer: TweezerConfig = field(default_factory=TweezerConfig)
    star: StarConfig = field(default_factory=StarConfig)
    soldiers: SoldiersConfig = field(default_factory=SoldiersConfig)
    methods: MethodsConfig = field(default_factory=MethodsConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PatternDetectionConfig':
        """
        Create configuration from dictionary (JSON deserialization).

        Sections and keys missing from ``data`` keep their defaults and
        unknown sections are ignored. An unknown key inside a known section
        raises ``InvalidArgument``.
        """
        section_classes = {f.name: f.default_factory for f in fields(cls)}

        sections = {}
        for name, section_data in data.items():
            if name not in section_classes or not isinstance(section_data, dict):
                continue
            section_class = section_classes[name]
            known = {f.name for f in fields(section_class)}
            unknown = sorted(set(section_data) - known)
            if unknown:
                raise InvalidArgument(
                    f"Unknown {name} setting(s): {', '.join(unknown)}",
                    argument=name,
                    value=unknown,
                )
            sections[name] = section_class(**section_data)

        return cls(**sections)

    def save_to_file(self, filepath: Path):
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_from_file(cls, filepath: Path) -> 'PatternDetectionConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
