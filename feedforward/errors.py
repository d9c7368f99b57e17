"""
Exceptions for the feed-forward engine.

Every failure the engine reports derives from FeedForwardError so callers
can catch all of them at once, or pick out a single kind.
"""

from typing import Any, Dict, Optional


class FeedForwardError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class ConstructionError(FeedForwardError):
    """Raised when a layer or model cannot be built (zero width, too few layers)."""
    pass


class DimensionError(FeedForwardError):
    """Raised when a vector length does not match a layer's declared width."""

    def __init__(self, message: str, expected: int, actual: int,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        context.setdefault('expected', expected)
        context.setdefault('actual', actual)
        super().__init__(message, context)
        self.expected = expected
        self.actual = actual


class NumericError(FeedForwardError):
    """Raised when a computation produces NaN or Inf."""
    pass
