"""
Pattern Catalog

Registry of named candlestick formations. Each entry pairs a name with a
``Predicate`` and a short description; the catalog keeps insertion order,
which is the order ``evaluate_all`` reports results in.

The catalog is append-only: names are unique and cannot be replaced.
"""

import inspect
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Union

from ..exceptions import InsufficientHistory, InvalidArgument, UnknownPattern
from ..logger import get_logger
from ..models.market_data import BarWindow
from .pattern_config import PatternDetectionConfig
from .predicates import Predicate

logger = get_logger(__name__)


@dataclass(frozen=True)
class PatternDefinition:
    """A named formation and the test that recognizes it."""
    name: str
    test: Predicate
    description: str = ""

    @property
    def min_bars(self) -> int:
        return self.test.min_bars

    def history_shortfall(self, window: BarWindow) -> Optional[InsufficientHistory]:
        """Describe why ``window`` is too short for this pattern, if it is."""
        if len(window) >= self.min_bars:
            return None
        return InsufficientHistory(
            f"{self.name} needs {self.min_bars} bars, window has {len(window)}",
            required=self.min_bars,
            available=len(window),
        )


def _as_predicate(name: str, test: Union[Predicate, Callable], min_bars: Optional[int]) -> Predicate:
    """
    Accept a Predicate or a plain callable.

    Plain callables take either ``(window)`` or ``(window, metrics)``.
    """
    if isinstance(test, Predicate):
        if min_bars is not None and min_bars != test.min_bars:
            return Predicate(test, name=name, min_bars=min_bars)
        return test

    if not callable(test):
        raise InvalidArgument(f"Pattern test for {name} is not callable", argument="test", value=test)

    try:
        arity = len(inspect.signature(test).parameters)
    except (TypeError, ValueError):
        arity = 2

    if arity == 1:
        return Predicate(lambda w, m: test(w), name=name, min_bars=min_bars or 1)
    return Predicate(test, name=name, min_bars=min_bars or 1)


class PatternCatalog:
    """Ordered, append-only mapping of pattern names to definitions."""

    def __init__(self, definitions: Optional[List[PatternDefinition]] = None):
        self._definitions: Dict[str, PatternDefinition] = {}
        for definition in definitions or []:
            self.add(definition)

    def add(self, definition: PatternDefinition) -> PatternDefinition:
        if not definition.name:
            raise InvalidArgument("Pattern name must not be empty", argument="name", value=definition.name)
        if definition.name in self._definitions:
            raise InvalidArgument(
                f"Pattern already registered: {definition.name}",
                argument="name",
                value=definition.name,
            )
        self._definitions[definition.name] = definition
        return definition

    def register(
        self,
        name: str,
        test: Union[Predicate, Callable],
        description: str = "",
        min_bars: Optional[int] = None
    ) -> PatternDefinition:
        """
        Register a new formation.

        Args:
            name: Unique pattern name
            test: Predicate, or callable taking ``(window)`` or ``(window, metrics)``
            description: Free text
            min_bars: Minimum history; defaults to the predicate's own (1 for callables)

        Raises:
            InvalidArgument: duplicate or empty name, non-callable test
        """
        definition = self.add(PatternDefinition(name, _as_predicate(name, test, min_bars), description))
        logger.debug(f"Registered pattern {name} (min_bars={definition.min_bars})")
        return definition

    def get(self, name: str) -> PatternDefinition:
        try:
            return self._definitions[name]
        except KeyError:
            raise UnknownPattern(name) from None

    def names(self) -> List[str]:
        return list(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[PatternDefinition]:
        return iter(list(self._definitions.values()))

    def __len__(self) -> int:
        return len(self._definitions)


def build_default_catalog(config: Optional[PatternDetectionConfig] = None) -> PatternCatalog:
    """
    Catalog with every built-in formation, single-bar entries first.

    Args:
        config: Thresholds; defaults when omitted
    """
    # Pattern modules import PatternDefinition from here
    from .multi_candlestick import multi_candlestick_patterns
    from .single_candlestick import single_candlestick_patterns

    config = config or PatternDetectionConfig()
    catalog = PatternCatalog()
    for definition in single_candlestick_patterns(config) + multi_candlestick_patterns(config):
        catalog.add(definition)
    return catalog
