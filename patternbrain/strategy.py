"""
Offensive / defensive classification and strategy-shift detection.

The classifier is pluggable: any callable taking a move and the board size and
returning one of OFFENSIVE, DEFENSIVE or NEUTRAL. The default rules read the
board geometry and the move outcome:

- brilliant moves and cells in the central square are offensive
- blocked moves and edge cells are defensive
- everything else is neutral
"""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, Sequence

from .models import BLOCKED, BRILLIANT, Move, MovementPattern
from .utils import linear_slope, safe_mean

OFFENSIVE = "offensive"
DEFENSIVE = "defensive"
NEUTRAL = "neutral"

MoveClassifier = Callable[[Move, int], str]


def default_classifier(move: Move, board_size: int) -> str:
    r, c = move.position
    if move.outcome == BRILLIANT:
        return OFFENSIVE
    centre = (board_size - 1) / 2.0
    if max(abs(r - centre), abs(c - centre)) <= board_size / 4.0:
        return OFFENSIVE
    if move.outcome == BLOCKED:
        return DEFENSIVE
    if r in (0, board_size - 1) or c in (0, board_size - 1):
        return DEFENSIVE
    return NEUTRAL


def _ratio(labels: Sequence[str], label: str) -> float:
    if not labels:
        return 0.0
    return sum(1 for x in labels if x == label) / float(len(labels))


def _success_rate(moves: Sequence[Move], default: float = 0.5) -> float:
    if not moves:
        return default
    return sum(1 for m in moves if m.succeeded) / float(len(moves))


class StrategyDetector:
    def __init__(
        self,
        board_size: int = 8,
        classifier: MoveClassifier = default_classifier,
        window: int = 10,
        delta: float = 0.3,
        pressure_time: float = 10.0,
    ):
        self.board_size = board_size
        self.classifier = classifier
        self.window = window
        self.delta = delta
        self.pressure_time = pressure_time

    def classify(self, move: Move) -> str:
        label = self.classifier(move, self.board_size)
        return label if label in (OFFENSIVE, DEFENSIVE) else NEUTRAL

    def labels(self, moves: Sequence[Move]) -> List[str]:
        return [self.classify(m) for m in moves]

    def window_ratios(self, labels: Sequence[str]) -> List[float]:
        """Offensive ratio of each consecutive full window, oldest first."""
        n = len(labels) // self.window
        return [_ratio(labels[i * self.window:(i + 1) * self.window], OFFENSIVE) for i in range(n)]

    def aggression_trend(self, labels: Sequence[str]) -> float:
        return linear_slope(self.window_ratios(labels))

    def contextual_aggression(self, moves: Sequence[Move], labels: Sequence[str]) -> Dict[str, float]:
        by_tag: Dict[str, List[str]] = defaultdict(list)
        for m, lab in zip(moves, labels):
            for tag in m.context.tags(self.pressure_time):
                by_tag[tag].append(lab)
        return {tag: _ratio(labs, OFFENSIVE) for tag, labs in sorted(by_tag.items())}

    def adaptation_instances(self, moves: Sequence[Move], labels: Sequence[str]) -> List[Dict[str, Any]]:
        """Points where the offensive ratio jumps by more than `delta` between windows."""
        ratios = self.window_ratios(labels)
        instances: List[Dict[str, Any]] = []
        last_shift = 0
        for i in range(1, len(ratios)):
            change = ratios[i] - ratios[i - 1]
            if abs(change) <= self.delta:
                continue
            start = i * self.window
            trigger_move = moves[start - 1]
            after = moves[start:start + self.window]
            instances.append({
                "window": i,
                "move_index": start,
                "from_ratio": ratios[i - 1],
                "to_ratio": ratios[i],
                "direction": "more_aggressive" if change > 0 else "more_defensive",
                "triggers": list(trigger_move.context.tags(self.pressure_time)),
                "speed": start - last_shift,
                "success_rate": _success_rate(after),
                "timestamp": trigger_move.timestamp,
            })
            last_shift = start
        return instances

    def analyze(self, moves: Sequence[Move]) -> List[MovementPattern]:
        if not moves:
            return []
        labels = self.labels(moves)
        offensive = [m for m, lab in zip(moves, labels) if lab == OFFENSIVE]
        latest = max(m.timestamp for m in moves)
        patterns = [MovementPattern(
            id="strategy_aggression",
            kind="strategic",
            payload={
                "offensive_ratio": _ratio(labels, OFFENSIVE),
                "defensive_ratio": _ratio(labels, DEFENSIVE),
                "aggression_trend": self.aggression_trend(labels),
                "contextual_aggression": self.contextual_aggression(moves, labels),
            },
            frequency=len(moves),
            effectiveness=_success_rate(offensive),
            confidence=min(len(moves) / 30.0, 1.0),
            last_seen=latest,
            contexts=("strategic_analysis",),
        )]

        instances = self.adaptation_instances(moves, labels)
        if instances:
            triggers: Dict[str, int] = defaultdict(int)
            for inst in instances:
                for tag in inst["triggers"]:
                    triggers[tag] += 1
            effectiveness = safe_mean([inst["success_rate"] for inst in instances], default=0.5)
            patterns.append(MovementPattern(
                id="strategy_adaptation",
                kind="strategic",
                payload={
                    "adaptation_frequency": len(instances),
                    "adaptation_triggers": dict(sorted(triggers.items())),
                    "adaptation_effectiveness": effectiveness,
                    "adaptation_speed": safe_mean([inst["speed"] for inst in instances]),
                    "instances": instances,
                },
                frequency=len(instances),
                effectiveness=effectiveness,
                confidence=min(len(instances) / 10.0, 1.0),
                last_seen=max(inst["timestamp"] for inst in instances),
                contexts=("adaptation", "strategic_change"),
            ))
        return patterns
