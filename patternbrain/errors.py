"""
Error hierarchy for the pattern engine.

Only validation problems surface as exceptions. Sparse or empty data never
raises; the analyzers fall back to neutral defaults instead.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "PatternBrainError",
    "InvalidMoveError",
    "InvalidContextError",
    "SnapshotError",
    "ConfigurationError",
]


class PatternBrainError(Exception):
    """Base exception for all engine errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        context: Extra fields for debugging
    """
    code: str = "PATTERNBRAIN_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class InvalidMoveError(PatternBrainError):
    """Move is outside the board, has a bad reaction time or an unknown outcome."""
    code: str = "INVALID_MOVE"


class InvalidContextError(PatternBrainError):
    """Game context is missing fields or carries out-of-range values."""
    code: str = "INVALID_CONTEXT"


class SnapshotError(PatternBrainError):
    """Exported state could not be restored."""
    code: str = "INVALID_SNAPSHOT"


class ConfigurationError(PatternBrainError):
    code: str = "INVALID_CONFIG"
