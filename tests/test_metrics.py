import pytest

from patternbrain import BehavioralMetrics, GameContext
from patternbrain.metrics import (
    adaptability,
    compute_metrics,
    creativity,
    learning_rate,
    patience,
    predictability,
    pressure_response,
)
from patternbrain.strategy import StrategyDetector

from conftest import make_move


def _moves(positions, outcomes=None, rt=1000.0):
    outcomes = outcomes or ["success"] * len(positions)
    return [make_move(p, t=i, rt=rt, outcome=o) for i, (p, o) in enumerate(zip(positions, outcomes))]


def test_predictability_directions():
    assert predictability(_moves([(0, 0), (1, 1), (2, 2), (3, 3)])) == 1.0
    assert predictability(_moves([(2, 2), (3, 3), (2, 2), (3, 3)])) == 0.0
    assert predictability(_moves([(0, 0), (1, 1)])) == 0.5


def test_adaptability_after_failures():
    moves = _moves([(0, 0)] * 5, ["blocked", "success", "blocked", "blocked", "success"])
    assert adaptability(moves) == pytest.approx(2 / 3.0)
    assert adaptability(_moves([(0, 0)] * 3)) == 0.5


def test_patience_and_learning():
    assert patience(_moves([(0, 0)] * 3, rt=2000.0)) == pytest.approx(0.5)
    moves = _moves([(0, 0)] * 4, ["blocked", "blocked", "success", "success"])
    assert learning_rate(moves) == 1.0


def test_creativity_rewards_spread():
    same = creativity(_moves([(0, 0)] * 5), 8)
    spread = creativity(_moves([(0, 0), (7, 7), (0, 7), (7, 0), (3, 4)]), 8)
    assert same == pytest.approx(0.1)
    assert spread > same


def test_pressure_response_neutral_without_pressure():
    assert pressure_response(_moves([(0, 0)] * 5)) == 0.5
    tense = GameContext(time_remaining=2.0)
    moves = [make_move((0, 0), ctx=tense, outcome="blocked") for _ in range(3)] + _moves([(1, 1)] * 3)
    assert pressure_response(moves) == 0.0


def test_compute_metrics_window_guard():
    detector = StrategyDetector(board_size=8)
    assert compute_metrics(_moves([(3, 3)] * 4), detector) == BehavioralMetrics()
    m = compute_metrics(_moves([(3, 3)] * 5), detector)
    assert m.aggressiveness == 1.0
    assert m.defensiveness == 0.0
    for value in m.to_dict().values():
        assert 0.0 <= value <= 1.0
