from __future__ import annotations

import math
import numbers
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .errors import InvalidContextError, InvalidMoveError
from .utils import Position

# Move outcomes as reported by the game
SUCCESS = "success"
BLOCKED = "blocked"
SUBOPTIMAL = "suboptimal"
BRILLIANT = "brilliant"
OUTCOMES = (SUCCESS, BLOCKED, SUBOPTIMAL, BRILLIANT)
SUCCESS_OUTCOMES = (SUCCESS, BRILLIANT)

PATTERN_KINDS = ("sequence", "position_preference", "timing", "strategic")

METRIC_NAMES = (
    "aggressiveness",
    "defensiveness",
    "creativity",
    "predictability",
    "adaptability",
    "patience",
    "pressure_response",
    "learning_rate",
)

PRESSURE_TIME = 10.0
HIGH_DIFFICULTY = 0.7
EARLY_GAME_MOVES = 10


def _unit(name: str, value: Any) -> float:
    # restored scores must already be normalized
    v = float(value)
    if not math.isfinite(v) or not 0.0 <= v <= 1.0:
        raise ValueError(f"{name} must lie in [0, 1], got {value!r}")
    return v


@dataclass(frozen=True)
class GameContext:
    player_score: int = 0
    ai_score: int = 0
    moves_count: int = 0
    time_remaining: float = 60.0
    difficulty: float = 0.5

    @property
    def is_losing(self) -> bool:
        return self.ai_score > self.player_score

    def is_pressure(self, pressure_time: float = PRESSURE_TIME) -> bool:
        return self.time_remaining < pressure_time or self.is_losing

    def tags(self, pressure_time: float = PRESSURE_TIME) -> Tuple[str, ...]:
        """Situational tags used to label patterns and match contexts."""
        out: List[str] = []
        if self.time_remaining < pressure_time:
            out.append("time_pressure")
        if self.ai_score > self.player_score:
            out.append("losing")
        elif self.player_score > self.ai_score:
            out.append("winning")
        else:
            out.append("tied")
        out.append("early_game" if self.moves_count < EARLY_GAME_MOVES else "late_game")
        if self.difficulty >= HIGH_DIFFICULTY:
            out.append("high_difficulty")
        return tuple(out)

    def validate(self) -> "GameContext":
        for name in ("player_score", "ai_score", "moves_count", "time_remaining", "difficulty"):
            if not isinstance(getattr(self, name), numbers.Real) or isinstance(getattr(self, name), bool):
                raise InvalidContextError(f"{name} must be a number", context={name: getattr(self, name)})
        if self.player_score < 0 or self.ai_score < 0:
            raise InvalidContextError("scores must be non-negative", context={"score": (self.player_score, self.ai_score)})
        if self.moves_count < 0:
            raise InvalidContextError("moves_count must be non-negative", context={"moves_count": self.moves_count})
        if not math.isfinite(self.time_remaining) or self.time_remaining < 0:
            raise InvalidContextError("time_remaining must be a non-negative number", context={"time_remaining": self.time_remaining})
        if not math.isfinite(self.difficulty) or not 0.0 <= self.difficulty <= 1.0:
            raise InvalidContextError("difficulty must lie in [0, 1]", context={"difficulty": self.difficulty})
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_score": self.player_score,
            "ai_score": self.ai_score,
            "moves_count": self.moves_count,
            "time_remaining": self.time_remaining,
            "difficulty": self.difficulty,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "GameContext":
        if not isinstance(d, dict):
            raise InvalidContextError("context must be a mapping", context={"type": type(d).__name__})
        missing = [k for k in ("player_score", "ai_score", "moves_count", "time_remaining", "difficulty") if k not in d]
        if missing:
            raise InvalidContextError("context is missing fields", context={"missing": missing})
        try:
            ctx = GameContext(
                player_score=int(d["player_score"]),
                ai_score=int(d["ai_score"]),
                moves_count=int(d["moves_count"]),
                time_remaining=float(d["time_remaining"]),
                difficulty=float(d["difficulty"]),
            )
        except (TypeError, ValueError) as e:
            raise InvalidContextError(f"context has malformed values: {e}") from e
        return ctx.validate()


@dataclass(frozen=True)
class Move:
    position: Position
    timestamp: float
    reaction_time: float
    context: GameContext
    outcome: str = SUCCESS

    @property
    def succeeded(self) -> bool:
        return self.outcome in SUCCESS_OUTCOMES

    def validate(self, board_size: int) -> "Move":
        try:
            r, c = self.position
        except (TypeError, ValueError):
            raise InvalidMoveError("position must be a (row, col) pair", context={"position": self.position})
        if not (isinstance(r, numbers.Integral) and isinstance(c, numbers.Integral)):
            raise InvalidMoveError("position coordinates must be integers", context={"position": self.position})
        if not (0 <= r < board_size and 0 <= c < board_size):
            raise InvalidMoveError(
                "position outside the board",
                context={"position": self.position, "board_size": board_size},
            )
        if not isinstance(self.reaction_time, numbers.Real) or not math.isfinite(self.reaction_time) or self.reaction_time < 0:
            raise InvalidMoveError("reaction_time must be a non-negative number", context={"reaction_time": self.reaction_time})
        if not isinstance(self.timestamp, numbers.Real) or not math.isfinite(self.timestamp):
            raise InvalidMoveError("timestamp must be a finite number", context={"timestamp": self.timestamp})
        if self.outcome not in OUTCOMES:
            raise InvalidMoveError("unknown outcome", context={"outcome": self.outcome})
        if not isinstance(self.context, GameContext):
            raise InvalidMoveError("context must be a GameContext", context={"type": type(self.context).__name__})
        try:
            self.context.validate()
        except InvalidContextError as e:
            raise InvalidMoveError(f"move context rejected: {e.message}", context=e.context) from e
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": [int(self.position[0]), int(self.position[1])],
            "timestamp": self.timestamp,
            "reaction_time": self.reaction_time,
            "context": self.context.to_dict(),
            "outcome": self.outcome,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Move":
        try:
            pos = d["position"]
            return Move(
                position=(int(pos[0]), int(pos[1])),
                timestamp=float(d["timestamp"]),
                reaction_time=float(d["reaction_time"]),
                context=GameContext.from_dict(d.get("context", {})),
                outcome=str(d.get("outcome", SUCCESS)),
            )
        except InvalidContextError as e:
            raise InvalidMoveError(f"move context rejected: {e.message}", context=e.context) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise InvalidMoveError(f"malformed move: {e}") from e


@dataclass(frozen=True)
class MovementPattern:
    id: str
    kind: str
    payload: Dict[str, Any]
    frequency: int
    effectiveness: float
    confidence: float
    last_seen: float
    contexts: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "payload": self.payload,
            "frequency": self.frequency,
            "effectiveness": self.effectiveness,
            "confidence": self.confidence,
            "last_seen": self.last_seen,
            "contexts": list(self.contexts),
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MovementPattern":
        if d["kind"] not in PATTERN_KINDS:
            raise ValueError(f"unknown pattern kind {d['kind']!r}")
        return MovementPattern(
            id=str(d["id"]),
            kind=str(d["kind"]),
            payload=dict(d.get("payload", {})),
            frequency=int(d.get("frequency", 0)),
            effectiveness=_unit("effectiveness", d.get("effectiveness", 0.5)),
            confidence=_unit("confidence", d.get("confidence", 0.0)),
            last_seen=float(d.get("last_seen", 0.0)),
            contexts=tuple(d.get("contexts", ())),
        )


@dataclass
class PositionStats:
    frequency: int = 0
    average_reaction_time: float = 0.0
    success_rate: float = 0.0
    context_counts: Counter = field(default_factory=Counter)

    def preferred_contexts(self, k: int = 3) -> List[str]:
        return [tag for tag, _ in sorted(self.context_counts.items(), key=lambda x: (-x[1], x[0]))[:k]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frequency": self.frequency,
            "average_reaction_time": self.average_reaction_time,
            "success_rate": self.success_rate,
            "preferred_contexts": self.preferred_contexts(),
        }


@dataclass(frozen=True)
class BehavioralMetrics:
    aggressiveness: float = 0.5
    defensiveness: float = 0.5
    creativity: float = 0.5
    predictability: float = 0.5
    adaptability: float = 0.5
    patience: float = 0.5
    pressure_response: float = 0.5
    learning_rate: float = 0.5

    def to_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in METRIC_NAMES}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "BehavioralMetrics":
        return BehavioralMetrics(**{name: _unit(name, d.get(name, 0.5)) for name in METRIC_NAMES})


@dataclass(frozen=True)
class PredictionCandidate:
    position: Position
    probability: float
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": [int(self.position[0]), int(self.position[1])],
            "probability": self.probability,
            "reasoning": self.reasoning,
        }
