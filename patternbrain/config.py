from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigurationError

ENV_PREFIX = "PATTERNBRAIN_"


@dataclass(frozen=True)
class EngineConfig:
    board_size: int = 8
    max_history: int = 1000
    sequence_window: int = 3
    min_frequency: int = 3
    analysis_window: int = 50  # rolling window for behavioral metrics
    min_metric_moves: int = 5
    full_analysis_interval: int = 10
    pressure_time: float = 10.0
    min_pressure_moves: int = 5
    adaptation_window: int = 10
    adaptation_delta: float = 0.3
    similarity_threshold: float = 0.7
    fallback_probability: float = 0.1
    top_positions: int = 5
    # sequence, position preference, context
    predictor_weights: Tuple[float, float, float] = field(default=(0.4, 0.3, 0.3))
    random_seed: int = 42

    def validate(self) -> "EngineConfig":
        if self.board_size < 1:
            raise ConfigurationError("board_size must be positive", context={"board_size": self.board_size})
        if self.max_history < self.sequence_window:
            raise ConfigurationError(
                "max_history must hold at least one sequence window",
                context={"max_history": self.max_history, "sequence_window": self.sequence_window},
            )
        if self.sequence_window < 2:
            raise ConfigurationError("sequence_window must be >= 2", context={"sequence_window": self.sequence_window})
        for name in ("min_frequency", "analysis_window", "full_analysis_interval", "adaptation_window", "top_positions"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be >= 1", context={name: getattr(self, name)})
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ConfigurationError("similarity_threshold must lie in [0, 1]")
        if not 0.0 <= self.fallback_probability <= 1.0:
            raise ConfigurationError("fallback_probability must lie in [0, 1]")
        if len(self.predictor_weights) != 3 or any(w < 0 for w in self.predictor_weights):
            raise ConfigurationError(
                "predictor_weights needs three non-negative weights",
                context={"predictor_weights": self.predictor_weights},
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["predictor_weights"] = list(self.predictor_weights)
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "EngineConfig":
        known = {k: v for k, v in d.items() if k in EngineConfig.__dataclass_fields__}
        if "predictor_weights" in known:
            known["predictor_weights"] = tuple(float(w) for w in known["predictor_weights"])
        try:
            return EngineConfig(**known).validate()
        except TypeError as e:
            raise ConfigurationError(f"Bad configuration: {e}") from e

    @staticmethod
    def from_env(environ: Optional[Dict[str, str]] = None) -> "EngineConfig":
        """Build a config from PATTERNBRAIN_* variables, e.g. PATTERNBRAIN_BOARD_SIZE=10."""
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for name, f in EngineConfig.__dataclass_fields__.items():
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                if name == "predictor_weights":
                    overrides[name] = tuple(float(x) for x in raw.split(","))
                elif f.type in ("int", int):
                    overrides[name] = int(raw)
                else:
                    overrides[name] = float(raw)
            except ValueError as e:
                raise ConfigurationError(f"Cannot parse {ENV_PREFIX}{name.upper()}={raw!r}") from e
        return EngineConfig(**overrides).validate()
