from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from .models import BehavioralMetrics, Move
from .strategy import DEFENSIVE, OFFENSIVE, StrategyDetector
from .utils import clamp01, safe_mean

PATIENCE_SCALE_MS = 2000.0


def _successes(moves: Sequence[Move]) -> List[float]:
    return [1.0 if m.succeeded else 0.0 for m in moves]


def creativity(moves: Sequence[Move], board_size: int) -> float:
    """Mix of how many distinct cells get used and how widely they are spread."""
    cells = board_size * board_size
    coverage = len({m.position for m in moves}) / float(min(len(moves), cells))
    coords = np.asarray([m.position for m in moves], dtype=np.float64)
    # std of one coordinate drawn uniformly from 0..board_size-1
    uniform_std = math.sqrt((board_size * board_size - 1) / 12.0)
    if uniform_std <= 0:
        return clamp01(coverage)
    spread = float(np.mean(np.std(coords, axis=0))) / uniform_std
    return clamp01(0.5 * coverage + 0.5 * clamp01(spread))


def predictability(moves: Sequence[Move]) -> float:
    """Fraction of steps that repeat the previous step's direction."""
    dirs: List[Tuple[int, int]] = [
        (b.position[0] - a.position[0], b.position[1] - a.position[1])
        for a, b in zip(moves, moves[1:])
    ]
    if len(dirs) < 2:
        return 0.5
    repeats = sum(1 for d0, d1 in zip(dirs, dirs[1:]) if d0 == d1)
    return clamp01(repeats / float(len(dirs) - 1))


def adaptability(moves: Sequence[Move]) -> float:
    """Recovery rate: how often the move after a failed one succeeds."""
    after_failure = [b for a, b in zip(moves, moves[1:]) if not a.succeeded]
    if not after_failure:
        return 0.5
    return clamp01(safe_mean(_successes(after_failure)))


def patience(moves: Sequence[Move]) -> float:
    mean_rt = safe_mean([m.reaction_time for m in moves])
    return clamp01(mean_rt / (mean_rt + PATIENCE_SCALE_MS))


def pressure_response(moves: Sequence[Move], pressure_time: float = 10.0) -> float:
    pressure = [m for m in moves if m.context.is_pressure(pressure_time)]
    if not pressure:
        return 0.5
    calm = [m for m in moves if not m.context.is_pressure(pressure_time)]
    baseline = safe_mean(_successes(calm if calm else moves))
    return clamp01(0.5 + (safe_mean(_successes(pressure)) - baseline) / 2.0)


def learning_rate(moves: Sequence[Move]) -> float:
    half = len(moves) // 2
    if half == 0:
        return 0.5
    early = safe_mean(_successes(moves[:half]))
    late = safe_mean(_successes(moves[half:]))
    return clamp01(0.5 + (late - early) / 2.0)


def compute_metrics(
    moves: Sequence[Move],
    detector: StrategyDetector,
    min_moves: int = 5,
) -> BehavioralMetrics:
    """Eight traits from a window of recent moves; neutral 0.5 when the window is too small."""
    if len(moves) < min_moves:
        return BehavioralMetrics()
    moves = list(moves)
    labels = detector.labels(moves)
    n = float(len(labels))
    return BehavioralMetrics(
        aggressiveness=clamp01(labels.count(OFFENSIVE) / n),
        defensiveness=clamp01(labels.count(DEFENSIVE) / n),
        creativity=creativity(moves, detector.board_size),
        predictability=predictability(moves),
        adaptability=adaptability(moves),
        patience=patience(moves),
        pressure_response=pressure_response(moves, detector.pressure_time),
        learning_rate=learning_rate(moves),
    )
