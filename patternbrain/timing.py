from __future__ import annotations

from typing import List, Sequence

from .models import Move, MovementPattern
from .utils import clamp01, safe_mean, safe_variance

FAST_FACTOR = 0.7
SLOW_FACTOR = 1.5


def _success_rate(moves: Sequence[Move]) -> float:
    if not moves:
        return 0.0
    return sum(1 for m in moves if m.succeeded) / float(len(moves))


def speed_effectiveness(fast: Sequence[Move], slow: Sequence[Move]) -> float:
    """0.5 when quick and slow moves succeed equally; 1.0 when only quick ones do."""
    if not fast or not slow:
        return 0.5
    return clamp01(0.5 + (_success_rate(fast) - _success_rate(slow)) / 2.0)


def analyze_timing(
    moves: Sequence[Move],
    pressure_time: float = 10.0,
    min_pressure_moves: int = 5,
) -> List[MovementPattern]:
    if not moves:
        return []
    times = [m.reaction_time for m in moves]
    mean = safe_mean(times)
    variance = safe_variance(times)
    fast = [m for m in moves if m.reaction_time < mean * FAST_FACTOR]
    slow = [m for m in moves if m.reaction_time > mean * SLOW_FACTOR]
    consistency = clamp01(1.0 - variance / (mean * mean)) if mean > 0 else 1.0
    latest = max(m.timestamp for m in moves)

    patterns = [MovementPattern(
        id="timing_speed",
        kind="timing",
        payload={
            "average_reaction_time": mean,
            "variance": variance,
            "fast_moves": len(fast),
            "slow_moves": len(slow),
            "speed_consistency": consistency,
        },
        frequency=len(moves),
        effectiveness=speed_effectiveness(fast, slow),
        confidence=min(len(moves) / 50.0, 1.0),
        last_seen=latest,
        contexts=("timing_analysis",),
    )]

    pressure = [m for m in moves if m.context.is_pressure(pressure_time)]
    if len(pressure) < min_pressure_moves:
        return patterns
    calm = [m for m in moves if not m.context.is_pressure(pressure_time)]
    pressure_mean = safe_mean([m.reaction_time for m in pressure])
    normal_mean = safe_mean([m.reaction_time for m in calm], default=mean)
    pressure_success = _success_rate(pressure)
    patterns.append(MovementPattern(
        id="timing_pressure",
        kind="timing",
        payload={
            "pressure_reaction_time": pressure_mean,
            "normal_reaction_time": normal_mean,
            "pressure_performance_ratio": pressure_success,
            "baseline_success_rate": _success_rate(calm) if calm else pressure_success,
            "pressure_speed_change": (pressure_mean - normal_mean) / normal_mean if normal_mean > 0 else 0.0,
        },
        frequency=len(pressure),
        effectiveness=pressure_success,
        confidence=min(len(pressure) / 20.0, 1.0),
        last_seen=max(m.timestamp for m in pressure),
        contexts=("pressure", "time_constraint"),
    ))
    return patterns
