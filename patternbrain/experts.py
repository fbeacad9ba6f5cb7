from __future__ import annotations

import random
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .heatmap import PositionHeatmap
from .models import GameContext, Move, PredictionCandidate
from .sequences import SEQUENCE_WINDOW, continuations
from .utils import Position, jaccard, normalize_scores

# Each expert returns {position: probability}; the probabilities of one expert sum to 1
# (or the expert returns nothing when it has no opinion).
Distribution = Dict[Position, float]


def sequence_expert(
    moves: Sequence[Move],
    window: int = SEQUENCE_WINDOW,
    threshold: float = 0.7,
) -> Distribution:
    """Continue the in-progress sequence the way similar past runs continued."""
    if len(moves) < window:
        return {}
    prefix = [m.position for m in moves[-(window - 1):]]
    votes = continuations(moves, prefix, window=window, threshold=threshold)
    return normalize_scores(votes)


def position_expert(heatmap: PositionHeatmap, top: int = 5) -> Distribution:
    """Most played cells, weighted up when they tend to succeed."""
    ranked = sorted(heatmap.cells().items(), key=lambda kv: (-kv[1].frequency, kv[0]))[:top]
    scores = {pos: s.frequency * (0.5 + 0.5 * s.success_rate) for pos, s in ranked}
    return normalize_scores(scores)


def context_expert(
    moves: Sequence[Move],
    context: GameContext,
    pressure_time: float = 10.0,
    min_overlap: float = 0.5,
    decay: float = 0.9,
) -> Distribution:
    """Cells the player chose in situations like the current one, recent ones first."""
    if not moves:
        return {}
    current = context.tags(pressure_time)
    scores: Counter = Counter()
    n = len(moves)
    for i, m in enumerate(moves):
        if jaccard(current, m.context.tags(pressure_time)) >= min_overlap:
            scores[m.position] += decay ** (n - 1 - i)
    return normalize_scores(scores)


EXPERT_REGISTRY = (
    "sequence_continuation",
    "position_preference",
    "context",
)


def fuse(
    named: Sequence[Tuple[str, Distribution]],
    weights: Sequence[float],
    blocked: Iterable[Position] = (),
) -> List[PredictionCandidate]:
    """Weighted sum of expert distributions, one candidate per cell, best first."""
    blocked = {tuple(p) for p in blocked}
    totals: Dict[Position, float] = {}
    sources: Dict[Position, List[Tuple[float, str]]] = {}
    for (name, dist), w in zip(named, weights):
        for pos, p in dist.items():
            if pos in blocked or w <= 0:
                continue
            totals[pos] = totals.get(pos, 0.0) + w * p
            sources.setdefault(pos, []).append((w * p, name))
    ranked = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    out: List[PredictionCandidate] = []
    for pos, prob in ranked:
        names = [name for _, name in sorted(sources[pos], key=lambda x: (-x[0], x[1]))]
        out.append(PredictionCandidate(position=pos, probability=min(1.0, max(0.0, prob)), reasoning="+".join(names)))
    return out


def fill_random(
    candidates: List[PredictionCandidate],
    count: int,
    board_size: int,
    rng: random.Random,
    blocked: Iterable[Position] = (),
    probability: float = 0.1,
) -> List[PredictionCandidate]:
    """Top up `candidates` with uniformly drawn free cells until there are `count`."""
    out = list(candidates[:count])
    if len(out) >= count:
        return out
    taken = {tuple(p) for p in blocked} | {c.position for c in out}
    free = [(r, c) for r in range(board_size) for c in range(board_size) if (r, c) not in taken]
    picks = rng.sample(free, min(count - len(out), len(free)))
    out.extend(PredictionCandidate(position=p, probability=probability, reasoning="random_fallback") for p in picks)
    return out


def compute_all_experts(
    *,
    moves: Sequence[Move],
    heatmap: PositionHeatmap,
    context: GameContext,
    window: int = SEQUENCE_WINDOW,
    threshold: float = 0.7,
    top: int = 5,
    pressure_time: float = 10.0,
) -> List[Tuple[str, Distribution]]:
    dists = (
        sequence_expert(moves, window=window, threshold=threshold),
        position_expert(heatmap, top=top),
        context_expert(moves, context, pressure_time=pressure_time),
    )
    return list(zip(EXPERT_REGISTRY, dists))


def predict_next(
    *,
    moves: Sequence[Move],
    heatmap: PositionHeatmap,
    context: GameContext,
    count: int,
    rng: random.Random,
    board_size: int,
    weights: Sequence[float] = (0.4, 0.3, 0.3),
    occupied: Iterable[Position] = (),
    window: int = SEQUENCE_WINDOW,
    threshold: float = 0.7,
    top: int = 5,
    pressure_time: float = 10.0,
    fallback_probability: float = 0.1,
    experts: Optional[List[Tuple[str, Distribution]]] = None,
) -> List[PredictionCandidate]:
    if count <= 0:
        return []
    occupied = [tuple(p) for p in occupied]
    if experts is None:
        experts = compute_all_experts(
            moves=moves, heatmap=heatmap, context=context,
            window=window, threshold=threshold, top=top, pressure_time=pressure_time,
        )
    fused = fuse(experts, weights, blocked=occupied)
    return fill_random(fused, count, board_size, rng, blocked=occupied, probability=fallback_probability)
