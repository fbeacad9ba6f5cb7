from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .config import EngineConfig
from .errors import InvalidMoveError, PatternBrainError, SnapshotError
from .experts import predict_next
from .heatmap import PositionHeatmap
from .ledger import MoveLedger
from .metrics import compute_metrics
from .models import BehavioralMetrics, GameContext, Move, MovementPattern, PredictionCandidate
from .sequences import mine_sequences, movement_analytics, touch_up
from .strategy import MoveClassifier, StrategyDetector, default_classifier
from .timing import analyze_timing
from .utils import Position, safe_mean

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
DEFAULT_REACTION_TIME = 2000.0


class AnalysisScheduler:
    """Decides when a recorded move also pays for a full re-mine."""

    def __init__(self, interval: int = 10):
        self.interval = max(1, int(interval))
        self.full_passes = 0

    def should_run_full(self, recorded: int) -> bool:
        return recorded > 0 and recorded % self.interval == 0

    def mark(self) -> None:
        self.full_passes += 1


class PatternEngine:
    """
    Player-behavior pattern engine for one game session.

    - Move ledger: bounded history, oldest moves evicted first
    - Position heatmap: per-cell frequency / reaction time / success rate, O(1) per move
    - Pattern mining: sequences, position preferences, timing, strategy (full passes)
    - Behavioral metrics: eight [0, 1] traits over the last `analysis_window` moves
    - Prediction: sequence / position / context experts fused 0.4 / 0.3 / 0.3

    Every call runs to completion synchronously. One instance per session; the
    engine keeps no module-level state.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        classifier: MoveClassifier = default_classifier,
        rng: Optional[random.Random] = None,
    ):
        self.config = (config or EngineConfig()).validate()
        self.rng = rng if rng is not None else random.Random(self.config.random_seed)
        self.classifier = classifier
        self._build()

    def _build(self) -> None:
        cfg = self.config
        self.ledger = MoveLedger(cfg.max_history)
        self.position_heatmap = PositionHeatmap(cfg.board_size, pressure_time=cfg.pressure_time)
        self.detector = StrategyDetector(
            board_size=cfg.board_size,
            classifier=self.classifier,
            window=cfg.adaptation_window,
            delta=cfg.adaptation_delta,
            pressure_time=cfg.pressure_time,
        )
        self.scheduler = AnalysisScheduler(cfg.full_analysis_interval)
        self._patterns: List[MovementPattern] = []
        self._metrics = BehavioralMetrics()
        self._recorded = 0
        self._dirty = False

    # ---------------------- Public API ----------------------
    def record(self, move: Union[Move, Dict[str, Any]]) -> bool:
        """Ingest one player move. Invalid moves are logged and dropped; returns whether it was kept."""
        try:
            move = self._coerce(move)
        except InvalidMoveError as e:
            logger.warning("Rejected move: %s", e)
            return False

        evicted = self.ledger.record(move)
        if evicted is not None:
            self.position_heatmap.forget(evicted)
        self.position_heatmap.update(move)
        self._recorded += 1
        self._dirty = True

        self._touch_up()
        if self.scheduler.should_run_full(self._recorded):
            self._full_analysis()
        self._metrics = compute_metrics(
            self.ledger.window(self.config.analysis_window),
            self.detector,
            min_moves=self.config.min_metric_moves,
        )
        return True

    def heatmap(self) -> Dict[Position, Dict[str, Any]]:
        return self.position_heatmap.snapshot()

    def patterns(self) -> List[MovementPattern]:
        """Detected patterns, confidence first. Catches up on moves recorded since the last pass."""
        if self._dirty:
            self._full_analysis()
        return list(self._patterns)

    def metrics(self) -> BehavioralMetrics:
        return self._metrics

    def predict(
        self,
        context: Union[GameContext, Dict[str, Any]],
        count: int = 3,
        occupied: Iterable[Position] = (),
    ) -> List[PredictionCandidate]:
        """Ranked guesses for the player's next cell.

        Always returns `count` candidates while at least `count` cells are free;
        missing slots are filled with random free cells at low probability.
        """
        if isinstance(context, GameContext):
            ctx = context.validate()
        else:
            ctx = GameContext.from_dict(context)
        cfg = self.config
        return predict_next(
            moves=self.ledger.query(),
            heatmap=self.position_heatmap,
            context=ctx,
            count=int(count),
            rng=self.rng,
            board_size=cfg.board_size,
            weights=cfg.predictor_weights,
            occupied=occupied,
            window=cfg.sequence_window,
            threshold=cfg.similarity_threshold,
            top=cfg.top_positions,
            pressure_time=cfg.pressure_time,
            fallback_probability=cfg.fallback_probability,
        )

    def reset(self) -> None:
        self._build()
        logger.info("Engine state reset")

    def history(self, limit: Optional[int] = None) -> Tuple[Move, ...]:
        return self.ledger.query(limit)

    def analyze(self) -> List[MovementPattern]:
        self._full_analysis()
        return list(self._patterns)

    def profile(self) -> Dict[str, Any]:
        """Compact summary for the opponent's difficulty and personality logic."""
        moves = self.ledger.query()
        avg_rt = safe_mean([m.reaction_time for m in moves], default=DEFAULT_REACTION_TIME)
        return {
            "favorite_positions": self.position_heatmap.favorite_positions(self.config.top_positions),
            "avg_reaction_time": avg_rt,
            "predictability": self._metrics.predictability,
            "creativity": self._metrics.creativity,
            "risk_tolerance": self._metrics.aggressiveness,
            "adaptability": self._metrics.adaptability,
            "movement": movement_analytics(moves),
        }

    def export_state(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "config": self.config.to_dict(),
            "recorded": self._recorded,
            "moves": [m.to_dict() for m in self.ledger.query()],
            "patterns": [p.to_dict() for p in self._patterns],
            "metrics": self._metrics.to_dict(),
            "dirty": self._dirty,
        }

    def import_state(self, blob: Dict[str, Any]) -> None:
        """Restore an exported snapshot. The engine is untouched if the blob is rejected."""
        if not isinstance(blob, dict):
            raise SnapshotError("snapshot must be a mapping", context={"type": type(blob).__name__})
        version = blob.get("version")
        if version != SNAPSHOT_VERSION:
            raise SnapshotError("unsupported snapshot version", context={"version": version})
        try:
            config = EngineConfig.from_dict(blob["config"]) if "config" in blob else self.config
            moves = [Move.from_dict(d).validate(config.board_size) for d in blob.get("moves", [])]
            patterns = [MovementPattern.from_dict(d) for d in blob.get("patterns", [])]
            metrics = BehavioralMetrics.from_dict(blob.get("metrics", {}))
        except (PatternBrainError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Rejected snapshot: %s", e)
            raise SnapshotError(f"malformed snapshot: {e}") from e

        self.config = config
        self._build()
        for m in moves[-config.max_history:]:
            self.ledger.record(m)
            self.position_heatmap.update(m)
        self._recorded = max(int(blob.get("recorded", len(moves))), len(self.ledger))
        self._patterns = sorted(patterns, key=lambda p: (-p.confidence, p.kind, p.id))
        self._metrics = metrics
        self._dirty = bool(blob.get("dirty", False)) or ("patterns" not in blob and len(self.ledger) > 0)
        logger.info("Imported snapshot with %d moves", len(self.ledger))

    # ---------------------- Internals ----------------------
    def _coerce(self, move: Union[Move, Dict[str, Any]]) -> Move:
        if isinstance(move, dict):
            move = Move.from_dict(move)
        if not isinstance(move, Move):
            raise InvalidMoveError("expected a Move", context={"type": type(move).__name__})
        if not isinstance(move.position, tuple):
            try:
                move = replace(move, position=tuple(move.position))
            except TypeError as e:
                raise InvalidMoveError("position must be a (row, col) pair") from e
        return move.validate(self.config.board_size)

    def _touch_up(self) -> None:
        window = self.config.sequence_window
        if not self._patterns or len(self.ledger) < window:
            return
        trailing = self.ledger.window(window)
        for i, p in enumerate(self._patterns):
            refreshed = touch_up(p, trailing, self.config.pressure_time)
            if refreshed is not None:
                self._patterns[i] = refreshed
                break

    def _full_analysis(self) -> None:
        cfg = self.config
        moves = self.ledger.query()
        latest = max((m.timestamp for m in moves), default=0.0)
        found: List[MovementPattern] = []
        found.extend(mine_sequences(moves, cfg.sequence_window, cfg.min_frequency, cfg.pressure_time))
        found.extend(self.position_heatmap.preference_patterns(last_seen=latest))
        found.extend(analyze_timing(moves, cfg.pressure_time, cfg.min_pressure_moves))
        found.extend(self.detector.analyze(moves))
        # rebuilt wholesale: anything not reconfirmed by this pass is dropped
        self._patterns = sorted(found, key=lambda p: (-p.confidence, p.kind, p.id))
        self._dirty = False
        self.scheduler.mark()
        logger.debug("Full analysis over %d moves found %d patterns", len(moves), len(self._patterns))
