from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .models import Move, MovementPattern
from .utils import Position, safe_mean

SEQUENCE_WINDOW = 3
MIN_FREQUENCY = 3
CONFIDENCE_SATURATION = 10.0
MOVEMENT_SEGMENT = 5
MOVEMENT_HISTORY = 50


def sequence_key(positions: Sequence[Position]) -> str:
    return "|".join(f"{p[0]}-{p[1]}" for p in positions)


def sequence_confidence(count: int) -> float:
    return min(count / CONFIDENCE_SATURATION, 1.0)


def _common_tags(moves: Sequence[Move], pressure_time: float) -> Tuple[str, ...]:
    sets = [set(m.context.tags(pressure_time)) for m in moves]
    if not sets:
        return ()
    return tuple(sorted(set.intersection(*sets)))


def mine_sequences(
    moves: Sequence[Move],
    window: int = SEQUENCE_WINDOW,
    min_frequency: int = MIN_FREQUENCY,
    pressure_time: float = 10.0,
) -> List[MovementPattern]:
    """Count every length-`window` run of positions and keep the recurring ones.

    Effectiveness is the share of occurrences whose closing move succeeded.
    Output is sorted by confidence, then frequency, then id.
    """
    if window <= 0 or len(moves) < window:
        return []
    occurrences: Dict[str, List[Tuple[Move, ...]]] = {}
    for i in range(len(moves) - window + 1):
        run = tuple(moves[i:i + window])
        occurrences.setdefault(sequence_key([m.position for m in run]), []).append(run)

    patterns: List[MovementPattern] = []
    for key, runs in occurrences.items():
        count = len(runs)
        if count < min_frequency:
            continue
        closing = [r[-1] for r in runs]
        effectiveness = sum(1 for m in closing if m.succeeded) / float(count)
        starts = [r[0] for r in runs]
        contexts = sorted({t for m in closing for t in m.context.tags(pressure_time)})
        patterns.append(MovementPattern(
            id=f"seq_{key}",
            kind="sequence",
            payload={
                "sequence": [list(p.position) for p in runs[0]],
                "avg_reaction_time": safe_mean([m.reaction_time for r in runs for m in r]),
                "context_triggers": list(_common_tags(starts, pressure_time)),
            },
            frequency=count,
            effectiveness=effectiveness,
            confidence=sequence_confidence(count),
            last_seen=max(m.timestamp for r in runs for m in r),
            contexts=tuple(contexts),
        ))
    patterns.sort(key=lambda p: (-p.confidence, -p.frequency, p.id))
    return patterns


def similarity(current: Sequence[Position], candidate: Sequence[Position]) -> float:
    """Share of index-aligned positions the two sequences have in common."""
    compare = min(len(current), len(candidate))
    if compare == 0:
        return 0.0
    matches = sum(1 for i in range(compare) if tuple(current[i]) == tuple(candidate[i]))
    return matches / float(compare)


def continuations(
    moves: Sequence[Move],
    prefix: Sequence[Position],
    window: int = SEQUENCE_WINDOW,
    threshold: float = 0.7,
) -> Counter:
    """Next-cell votes from historical runs whose opening resembles `prefix`.

    Each historical run of `window` moves is split into its first
    `window - 1` positions and the cell that followed; runs whose opening is at
    least `threshold` similar to `prefix` vote for that cell, weighted by the
    similarity.
    """
    votes: Counter = Counter()
    span = window - 1
    if len(prefix) < span or len(moves) < window:
        return votes
    prefix = [tuple(p) for p in prefix[-span:]]
    positions = [m.position for m in moves]
    for i in range(len(positions) - window + 1):
        opening = positions[i:i + span]
        sim = similarity(prefix, opening)
        if sim >= threshold:
            votes[positions[i + span]] += sim
    return votes


def touch_up(pattern: MovementPattern, trailing: Sequence[Move], pressure_time: float = 10.0) -> Optional[MovementPattern]:
    """Refresh a cached sequence pattern when the newest moves replay it.

    Counts stay as they were until the next full pass; only recency and
    contexts move forward.
    """
    if pattern.kind != "sequence" or not trailing:
        return None
    if pattern.id != f"seq_{sequence_key([m.position for m in trailing])}":
        return None
    last = trailing[-1]
    contexts = tuple(sorted(set(pattern.contexts) | set(last.context.tags(pressure_time))))
    return replace(pattern, last_seen=max(pattern.last_seen, last.timestamp), contexts=contexts)


def movement_efficiency(moves: Sequence[Move]) -> float:
    """Cells travelled per unit of time between consecutive moves."""
    if len(moves) < 2:
        return 0.0
    coords = np.asarray([m.position for m in moves], dtype=np.float64)
    times = np.asarray([m.timestamp for m in moves], dtype=np.float64)
    distance = float(np.sum(np.hypot(*np.diff(coords, axis=0).T)))
    elapsed = float(np.sum(np.diff(times)))
    return distance / elapsed if elapsed > 0 else 0.0


def movement_predictability(moves: Sequence[Move]) -> float:
    """Share of steps that repeat the direction of the step before."""
    if len(moves) < 3:
        return 0.0
    steps = np.diff(np.asarray([m.position for m in moves], dtype=np.int64), axis=0)
    repeats = int(np.sum(np.all(steps[1:] == steps[:-1], axis=1)))
    return repeats / float(len(steps))


def movement_analytics(
    moves: Sequence[Move],
    segment: int = MOVEMENT_SEGMENT,
    history: int = MOVEMENT_HISTORY,
) -> Dict[str, Any]:
    """Efficiency and direction consistency over consecutive runs of `segment` moves.

    The ledger is cut into back-to-back segments (a shorter trailing one counts
    when it holds at least two moves) and only the latest `history` segments
    are kept.
    """
    segments = [moves[i:i + segment] for i in range(0, len(moves), max(1, segment))]
    segments = [s for s in segments if len(s) >= 2][-history:]
    if not segments:
        return {
            "average_efficiency": 0.0,
            "average_predictability": 0.0,
            "total_sequences": 0,
            "most_efficient_sequence": None,
            "most_predictable_sequence": None,
        }
    scored = [
        {
            "sequence": [list(m.position) for m in s],
            "efficiency": movement_efficiency(s),
            "predictability": movement_predictability(s),
        }
        for s in segments
    ]
    return {
        "average_efficiency": safe_mean([s["efficiency"] for s in scored]),
        "average_predictability": safe_mean([s["predictability"] for s in scored]),
        "total_sequences": len(scored),
        "most_efficient_sequence": max(scored, key=lambda s: s["efficiency"]),
        "most_predictable_sequence": max(scored, key=lambda s: s["predictability"]),
    }
