from __future__ import annotations

import math
from typing import Iterable, Sequence, Tuple

import numpy as np

Position = Tuple[int, int]


def clamp01(x: float) -> float:
    """Clamp to [0, 1]; NaN and infinities collapse to the neutral 0.5."""
    x = float(x)
    if not math.isfinite(x):
        return 0.5
    return min(1.0, max(0.0, x))


def safe_mean(values: Sequence[float], default: float = 0.0) -> float:
    if len(values) == 0:
        return default
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def safe_variance(values: Sequence[float]) -> float:
    # population variance, matching the running statistics elsewhere
    if len(values) == 0:
        return 0.0
    return float(np.var(np.asarray(values, dtype=np.float64)))


def running_mean(avg: float, value: float, count: int) -> float:
    """Fold `value` into a mean that now covers `count` samples."""
    if count <= 0:
        return 0.0
    return avg + (value - avg) / count


def unfold_mean(avg: float, value: float, count: int) -> float:
    """Remove `value` from a mean over `count` samples; returns the mean of count - 1."""
    if count <= 1:
        return 0.0
    return (avg * count - value) / (count - 1)


def linear_slope(values: Sequence[float]) -> float:
    # least-squares slope against 0..n-1
    if len(values) < 2:
        return 0.0
    x = np.arange(len(values), dtype=np.float64)
    y = np.asarray(values, dtype=np.float64)
    slope = np.polyfit(x, y, 1)[0]
    return float(slope) if np.isfinite(slope) else 0.0


def normalize_scores(scores: dict) -> dict:
    total = float(sum(scores.values()))
    if total <= 0 or not math.isfinite(total):
        return {}
    return {k: float(v) / total for k, v in scores.items()}


def euclidean(a: Position, b: Position) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    sa, sb = set(a), set(b)
    if not sa and not sb:
        return 1.0
    return len(sa & sb) / float(len(sa | sb))
