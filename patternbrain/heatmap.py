from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, List, Sequence, Tuple

from .models import Move, MovementPattern, PositionStats
from .utils import Position, euclidean, running_mean, unfold_mean

# intensity buckets for the overlay: 0, <3, <6, <10, >=10
INTENSITY_LEVELS = (3, 6, 10)
RENDER_CHARS = " .:*#"


class PositionHeatmap:
    """
    Per-cell statistics maintained one event at a time.

    Frequencies, mean reaction time and success rate are never rebuilt from the
    move history. `forget` undoes an `update` when the ledger evicts a move, so
    the frequencies always sum to the number of moves still on record.
    """

    def __init__(self, board_size: int = 8, pressure_time: float = 10.0):
        self.board_size = board_size
        self.pressure_time = pressure_time
        self._cells: Dict[Position, PositionStats] = {}
        self._total = 0

    def update(self, move: Move) -> PositionStats:
        stats = self._cells.get(move.position)
        if stats is None:
            stats = PositionStats()
            self._cells[move.position] = stats
        stats.frequency += 1
        stats.average_reaction_time = running_mean(stats.average_reaction_time, move.reaction_time, stats.frequency)
        stats.success_rate = running_mean(stats.success_rate, 1.0 if move.succeeded else 0.0, stats.frequency)
        stats.context_counts.update(move.context.tags(self.pressure_time))
        self._total += 1
        return stats

    def forget(self, move: Move) -> None:
        stats = self._cells.get(move.position)
        if stats is None or stats.frequency <= 0:
            return
        if stats.frequency == 1:
            del self._cells[move.position]
        else:
            stats.average_reaction_time = unfold_mean(stats.average_reaction_time, move.reaction_time, stats.frequency)
            stats.success_rate = unfold_mean(stats.success_rate, 1.0 if move.succeeded else 0.0, stats.frequency)
            # guard against float drift past the valid range
            stats.success_rate = min(1.0, max(0.0, stats.success_rate))
            stats.average_reaction_time = max(0.0, stats.average_reaction_time)
            stats.frequency -= 1
            stats.context_counts.subtract(move.context.tags(self.pressure_time))
            stats.context_counts += Counter()  # drop non-positive counts
        self._total -= 1

    def clear(self) -> None:
        self._cells.clear()
        self._total = 0

    @property
    def total(self) -> int:
        return self._total

    def get(self, position: Position) -> PositionStats:
        return self._cells.get(tuple(position), PositionStats())

    def cells(self) -> Dict[Position, PositionStats]:
        return self._cells

    def snapshot(self) -> Dict[Position, Dict[str, Any]]:
        return {pos: stats.to_dict() for pos, stats in sorted(self._cells.items())}

    def hotspots(self, threshold: int = 5) -> List[Position]:
        return sorted(
            (pos for pos, s in self._cells.items() if s.frequency >= threshold),
            key=lambda p: (-self._cells[p].frequency, p),
        )

    def coldspots(self, threshold: int = 2) -> List[Position]:
        # every board cell counts, including ones never played
        return [
            (r, c)
            for r in range(self.board_size)
            for c in range(self.board_size)
            if self.intensity((r, c)) < threshold
        ]

    def intensity(self, position: Position) -> int:
        s = self._cells.get(tuple(position))
        return s.frequency if s is not None else 0

    def intensity_grid(self) -> List[List[int]]:
        grid: List[List[int]] = []
        for r in range(self.board_size):
            row = []
            for c in range(self.board_size):
                f = self.intensity((r, c))
                if f == 0:
                    row.append(0)
                else:
                    row.append(1 + sum(1 for lvl in INTENSITY_LEVELS if f >= lvl))
            grid.append(row)
        return grid

    def render(self) -> str:
        return "\n".join("".join(RENDER_CHARS[v] for v in row) for row in self.intensity_grid())

    def favorite_positions(self, k: int = 5) -> List[Position]:
        ranked = sorted(self._cells.items(), key=lambda kv: (-kv[1].frequency, kv[0]))
        return [pos for pos, _ in ranked[:k]]

    def similarity(self, position: Position, favorites: Sequence[Position]) -> float:
        """Closeness of `position` to the nearest favorite cell, 1.0 on top of one."""
        if not favorites:
            return 0.0
        d = min(euclidean(position, fav) for fav in favorites)
        return max(0.0, 1.0 - d / float(self.board_size))

    def analytics(self, hot_threshold: int = 5, cold_threshold: int = 2) -> Dict[str, Any]:
        unique = len(self._cells)
        return {
            "total_interactions": self._total,
            "unique_positions": unique,
            "average_intensity": self._total / float(unique or 1),
            "hotspot_count": len(self.hotspots(hot_threshold)),
            "coldspot_count": len(self.coldspots(cold_threshold)),
            "coverage_percentage": 100.0 * unique / float(self.board_size * self.board_size),
        }

    def quadrant(self, position: Position) -> str:
        half = self.board_size / 2.0
        vert = "top" if position[0] < half else "bottom"
        horiz = "left" if position[1] < half else "right"
        return f"{vert}_{horiz}"

    def preference_patterns(self, last_seen: float = 0.0, share: float = 0.2) -> List[MovementPattern]:
        """Favorite (top `share` by frequency) and avoided (bottom `share`) cells."""
        if not self._cells:
            return []
        ranked = sorted(self._cells.items(), key=lambda kv: (-kv[1].frequency, kv[0]))
        k = max(1, math.ceil(len(ranked) * share))
        favorites, avoided = ranked[:k], ranked[-k:]
        overall_rt = sum(s.average_reaction_time * s.frequency for _, s in ranked) / float(self._total or 1)

        fav_success = sum(s.success_rate for _, s in favorites) / len(favorites)
        quadrants = Counter(self.quadrant(p) for p, s in favorites for _ in range(s.frequency))
        fav_positions = [p for p, _ in favorites]
        patterns = [MovementPattern(
            id="pos_favorites",
            kind="position_preference",
            payload={
                "favorite_positions": [list(p) for p in fav_positions],
                "average_success_rate": fav_success,
                "preferred_quadrants": [q for q, _ in sorted(quadrants.items(), key=lambda x: (-x[1], x[0]))],
            },
            frequency=sum(s.frequency for _, s in favorites),
            effectiveness=fav_success,
            confidence=min(len(favorites) / 10.0, 1.0),
            last_seen=last_seen,
            contexts=self._merged_contexts(favorites),
        )]

        avoid_success = sum(s.success_rate for _, s in avoided) / len(avoided)
        reasons = set()
        for _, s in avoided:
            if s.success_rate < 0.5:
                reasons.add("low_success")
            if s.average_reaction_time > overall_rt:
                reasons.add("slow_decisions")
        if not reasons:
            reasons.add("rarely_considered")
        patterns.append(MovementPattern(
            id="pos_avoided",
            kind="position_preference",
            payload={
                "avoided_positions": [list(p) for p, _ in avoided],
                "avoidance_reasons": sorted(reasons),
                "alternative_positions": [list(p) for p in fav_positions if p not in dict(avoided)],
            },
            frequency=sum(s.frequency for _, s in avoided),
            effectiveness=min(1.0, max(0.0, 1.0 - avoid_success)),
            confidence=min(len(avoided) / 10.0, 1.0),
            last_seen=last_seen,
            contexts=self._merged_contexts(avoided),
        ))
        return patterns

    @staticmethod
    def _merged_contexts(entries) -> Tuple[str, ...]:
        tags = set()
        for _, s in entries:
            tags.update(s.preferred_contexts())
        return tuple(sorted(tags))
