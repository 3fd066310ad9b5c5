"""
Candela - candlestick pattern classification engine.

Classifies a newest-first window of OHLC bars against a catalog of named
candlestick formations.
"""

__version__ = "0.1.0"

from .exceptions import CandelaError, EmptyWindow, InsufficientHistory, InvalidArgument, UnknownPattern
from .logger import configure_logging, get_logger
from .models import Bar, BarWindow, CacheStats, EvaluationResult, PatternError
from .config import Config
from .patterns import PatternCatalog, PatternDefinition, PatternDetectionConfig, PatternEvaluator, Predicate

__all__ = [
    "__version__",
    "CandelaError",
    "EmptyWindow",
    "InsufficientHistory",
    "InvalidArgument",
    "UnknownPattern",
    "configure_logging",
    "get_logger",
    "Bar",
    "BarWindow",
    "CacheStats",
    "EvaluationResult",
    "PatternError",
    "Config",
    "PatternCatalog",
    "PatternDefinition",
    "PatternDetectionConfig",
    "PatternEvaluator",
    "Predicate",
]
