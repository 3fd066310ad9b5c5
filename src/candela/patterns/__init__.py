"""
Candlestick pattern classification.

Metric library, memoization cache, predicate algebra, the built-in
catalog and the evaluator that runs it.
"""

from .pattern_config import PatternDetectionConfig
from .cache import MetricCache, MetricKey
from .metrics import MetricLibrary, average_body, average_distance, body, lower_shadow, size, upper_shadow
from .predicates import Predicate, all_of, any_of, bar_predicate, window_predicate
from .catalog import PatternCatalog, PatternDefinition, build_default_catalog
from .evaluator import PatternEvaluator

__all__ = [
    "PatternDetectionConfig",
    "MetricCache",
    "MetricKey",
    "MetricLibrary",
    "average_body",
    "average_distance",
    "body",
    "lower_shadow",
    "size",
    "upper_shadow",
    "Predicate",
    "all_of",
    "any_of",
    "bar_predicate",
    "window_predicate",
    "PatternCatalog",
    "PatternDefinition",
    "build_default_catalog",
    "PatternEvaluator",
]
