"""
Candela Models Package

Value types shared across the engine: price bars, bar windows and the
results produced by evaluation and caching.
"""

from .market_data import Bar, BarWindow
from .evaluation import CacheStats, EvaluationResult, PatternError

__all__ = [
    "Bar",
    "BarWindow",
    "CacheStats",
    "EvaluationResult",
    "PatternError",
]
