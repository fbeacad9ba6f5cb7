from .config import EngineConfig
from .core import AnalysisScheduler, PatternEngine
from .errors import (
    ConfigurationError,
    InvalidContextError,
    InvalidMoveError,
    PatternBrainError,
    SnapshotError,
)
from .models import (
    BehavioralMetrics,
    GameContext,
    Move,
    MovementPattern,
    OUTCOMES,
    PositionStats,
    PredictionCandidate,
)
from .storage import StateStorage

__all__ = [
    "AnalysisScheduler",
    "BehavioralMetrics",
    "ConfigurationError",
    "EngineConfig",
    "GameContext",
    "InvalidContextError",
    "InvalidMoveError",
    "Move",
    "MovementPattern",
    "OUTCOMES",
    "PatternBrainError",
    "PatternEngine",
    "PositionStats",
    "PredictionCandidate",
    "SnapshotError",
    "StateStorage",
]
