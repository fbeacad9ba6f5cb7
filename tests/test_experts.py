import random

import pytest

from patternbrain import GameContext
from patternbrain.experts import context_expert, fill_random, fuse, position_expert
from patternbrain.heatmap import PositionHeatmap

from conftest import make_move


def test_fuse_weights_and_reasoning():
    named = [("a", {(0, 0): 1.0}), ("b", {(0, 0): 0.5, (1, 1): 0.5})]
    out = fuse(named, (0.4, 0.3))
    assert [c.position for c in out] == [(0, 0), (1, 1)]
    assert out[0].probability == pytest.approx(0.55)
    assert out[0].reasoning == "a+b"
    assert out[1].reasoning == "b"
    assert [c.position for c in fuse(named, (0.4, 0.3), blocked=[(1, 1)])] == [(0, 0)]


def test_fill_random_tops_up_free_cells():
    rng = random.Random(1)
    out = fill_random([], 3, board_size=2, rng=rng, blocked=[(0, 0)])
    assert sorted(c.position for c in out) == [(0, 1), (1, 0), (1, 1)]
    assert all(c.reasoning == "random_fallback" and c.probability == 0.1 for c in out)


def test_position_expert_prefers_successful_cells():
    hm = PositionHeatmap(board_size=8)
    for _ in range(2):
        hm.update(make_move((1, 1), outcome="success"))
        hm.update(make_move((5, 5), outcome="blocked"))
    dist = position_expert(hm)
    assert dist[(1, 1)] == pytest.approx(2 / 3.0)
    assert dist[(5, 5)] == pytest.approx(1 / 3.0)


def test_context_expert_matches_situation():
    tense = GameContext(ai_score=3, time_remaining=5.0)
    moves = [make_move((0, 0), ctx=tense), make_move((7, 7))]
    dist = context_expert(moves, tense)
    assert list(dist) == [(0, 0)]
    assert context_expert([], tense) == {}
