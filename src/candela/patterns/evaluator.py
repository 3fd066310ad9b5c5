"""
Pattern Evaluator

Public entry point of the engine. Binds a pattern catalog to a metric
library whose cache it owns, and answers three kinds of question about a
newest-first window of bars:

- compute_metric: one named aggregate (average body, EMA of ranges)
- test_pattern: one named formation
- evaluate_all: every formation in the catalog, with per-entry failure
  isolation

A single evaluator may be shared across threads; the only mutable state
is the metric cache, which serializes its own access.
"""

from typing import TYPE_CHECKING, Callable, Iterable, Optional, Union

from ..exceptions import EmptyWindow
from ..logger import configure_logging, get_logger
from ..models.evaluation import CacheStats, EvaluationResult, PatternError
from ..models.market_data import Bar, BarWindow
from .cache import DEFAULT_CAPACITY, MetricCache
from .catalog import PatternCatalog, PatternDefinition, build_default_catalog
from .metrics import MetricLibrary
from .pattern_config import PatternDetectionConfig
from .predicates import Predicate

if TYPE_CHECKING:
    from ..config import Config

logger = get_logger(__name__)

WindowLike = Union[BarWindow, Iterable[Bar]]


class PatternEvaluator:
    """
    Classifies bar windows against a pattern catalog.

    Args:
        catalog: Formations to evaluate; the built-in catalog when omitted
        cache: Metric cache; a new one of ``cache_capacity`` when omitted
        config: Thresholds used to build the built-in catalog
        cache_capacity: Capacity of the cache created when none is given
    """

    def __init__(
        self,
        catalog: Optional[PatternCatalog] = None,
        cache: Optional[MetricCache] = None,
        config: Optional[PatternDetectionConfig] = None,
        cache_capacity: int = DEFAULT_CAPACITY
    ):
        self.config = config or PatternDetectionConfig()
        self.catalog = catalog if catalog is not None else build_default_catalog(self.config)
        self.cache = cache if cache is not None else MetricCache(cache_capacity)
        self.metrics = MetricLibrary(self.cache)

        logger.debug(f"PatternEvaluator ready with {len(self.catalog)} patterns, cache capacity {self.cache.capacity}")

    @classmethod
    def from_config(cls, config: "Config") -> "PatternEvaluator":
        """Build an evaluator (and configure logging) from application settings."""
        configure_logging(
            level=config.logging.level,
            log_file=config.logging.file_path,
            max_size=config.logging.max_size,
            backup_count=config.logging.backup_count,
            console_output=config.logging.console_output,
        )
        return cls(
            config=config.load_pattern_config(),
            cache_capacity=config.metrics.cache_capacity,
        )

    def compute_metric(self, name: str, window: WindowLike, period: int) -> float:
        """
        Compute a window aggregate through the cache.

        Raises:
            InvalidArgument: unknown metric or non-positive period
            EmptyWindow: average_distance over zero bars
        """
        return self.metrics.compute(name, BarWindow.coerce(window), period)

    def test_pattern(self, name: str, window: WindowLike) -> bool:
        """
        Test one named formation against the current bar of ``window``.

        A window shorter than the formation needs answers False.

        Raises:
            UnknownPattern: name not in the catalog
            EmptyWindow: window has no bars
        """
        definition = self.catalog.get(name)
        window = self._require_bars(window)
        return definition.test(window, self.metrics)

    def evaluate_all(self, window: WindowLike) -> EvaluationResult:
        """
        Evaluate every catalog entry against ``window``.

        Entries are independent: an exception inside one is logged and
        recorded as a PatternError, that entry reports False and the rest
        still run.

        Raises:
            EmptyWindow: window has no bars
        """
        window = self._require_bars(window)

        matches = {}
        errors = []
        insufficient = []

        for definition in self.catalog:
            shortfall = definition.history_shortfall(window)
            if shortfall is not None:
                logger.debug(shortfall.message, extra={"pattern": definition.name})
                insufficient.append(definition.name)
                matches[definition.name] = False
                continue

            try:
                matches[definition.name] = definition.test(window, self.metrics)
            except Exception as e:
                logger.warning(
                    f"Pattern evaluation failed: {type(e).__name__}: {e}",
                    extra={"pattern": definition.name, "window": window.fingerprint[:12]},
                )
                errors.append(PatternError(
                    pattern_name=definition.name,
                    error_type=type(e).__name__,
                    message=str(e),
                ))
                matches[definition.name] = False

        return EvaluationResult(
            window_size=len(window),
            matches=matches,
            errors=errors,
            insufficient_history=insufficient,
        )

    def register_pattern(
        self,
        name: str,
        definition: Union[Predicate, Callable],
        description: str = "",
        min_bars: Optional[int] = None
    ) -> PatternDefinition:
        """
        Add a formation to this evaluator's catalog.

        Raises:
            InvalidArgument: name already registered
        """
        return self.catalog.register(name, definition, description=description, min_bars=min_bars)

    def clear_cache(self) -> None:
        self.cache.clear()

    @property
    def cache_stats(self) -> CacheStats:
        return self.cache.stats

    @staticmethod
    def _require_bars(window: WindowLike) -> BarWindow:
        window = BarWindow.coerce(window)
        if len(window) == 0:
            raise EmptyWindow()
        return window
