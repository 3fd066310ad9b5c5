"""
Evaluation Result Models

Pydantic models returned by the pattern evaluator and the metric cache:
- PatternError: one catalog entry that failed during a full evaluation
- EvaluationResult: per-pattern matches plus isolated errors
- CacheStats: counters describing metric cache effectiveness
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, computed_field


class PatternError(BaseModel):
    """A catalog entry whose test raised instead of answering."""

    pattern_name: str = Field(..., description="Catalog name of the failing entry")
    error_type: str = Field(..., description="Exception class name")
    message: str = Field(..., description="Exception message")


class EvaluationResult(BaseModel):
    """
    Outcome of running the whole catalog against one window.

    ``matches`` keeps catalog order. Entries listed in ``errors`` appear in
    ``matches`` as False.
    """

    window_size: int = Field(..., ge=0, description="Number of bars evaluated")
    matches: Dict[str, bool] = Field(default_factory=dict)
    errors: List[PatternError] = Field(default_factory=list)
    insufficient_history: List[str] = Field(
        default_factory=list,
        description="Patterns that needed more bars than the window held"
    )

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def matched_patterns(self) -> List[str]:
        """Names of the patterns that matched, in catalog order."""
        return [name for name, matched in self.matches.items() if matched]

    @computed_field
    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def __getitem__(self, name: str) -> bool:
        return self.matches[name]

    def __contains__(self, name: object) -> bool:
        return bool(self.matches.get(name, False))


class CacheStats(BaseModel):
    """Snapshot of metric cache counters."""

    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    evictions: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)
    capacity: int = Field(..., ge=1)

    @computed_field
    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups
