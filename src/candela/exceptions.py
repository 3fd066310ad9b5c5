"""
Candela error taxonomy.

HIERARCHY:
    CandelaError (base)
    ├── InvalidArgument
    ├── EmptyWindow
    ├── UnknownPattern
    └── InsufficientHistory

None of these derive from ValueError: pydantic only wraps ValueError and
AssertionError raised inside validators, so InvalidArgument raised while
building a Bar reaches the caller unchanged.
"""

from typing import Any, Dict, Optional


class CandelaError(Exception):
    """Base class for every error raised by the engine."""

    def __init__(self, message: str, code: str = "CANDELA_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
        }


class InvalidArgument(CandelaError):
    """Raised for a non-positive period, a malformed bar or a bad registration."""

    def __init__(self, message: str, argument: Optional[str] = None, value: Any = None):
        super().__init__(message, code="INVALID_ARGUMENT")
        self.argument = argument
        self.value = value


class EmptyWindow(CandelaError):
    """Raised when zero bars are passed where at least one is required."""

    def __init__(self, message: str = "Bar window is empty"):
        super().__init__(message, code="EMPTY_WINDOW")


class UnknownPattern(CandelaError):
    """Raised on lookup of a pattern name that is not in the catalog."""

    def __init__(self, pattern_name: str):
        super().__init__(f"Unknown pattern: {pattern_name}", code="UNKNOWN_PATTERN")
        self.pattern_name = pattern_name


class InsufficientHistory(CandelaError):
    """
    Informational only.

    Predicates resolve to False when a window is shorter than they need;
    this type exists so callers can describe that situation in reports.
    """

    def __init__(self, message: str, required: Optional[int] = None, available: Optional[int] = None):
        super().__init__(message, code="INSUFFICIENT_HISTORY")
        self.required = required
        self.available = available
