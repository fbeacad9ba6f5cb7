import pytest

from patternbrain import GameContext
from patternbrain.heatmap import PositionHeatmap

from conftest import make_move


def test_running_means_and_forget():
    hm = PositionHeatmap(board_size=8)
    first = make_move((2, 3), rt=1000.0, outcome="success")
    second = make_move((2, 3), rt=3000.0, outcome="blocked")
    hm.update(first)
    hm.update(second)
    stats = hm.get((2, 3))
    assert stats.frequency == 2
    assert stats.average_reaction_time == pytest.approx(2000.0)
    assert stats.success_rate == pytest.approx(0.5)

    hm.forget(first)
    stats = hm.get((2, 3))
    assert stats.frequency == 1
    assert stats.average_reaction_time == pytest.approx(3000.0)
    assert stats.success_rate == pytest.approx(0.0)
    assert hm.total == 1

    hm.forget(second)
    assert hm.snapshot() == {}
    assert hm.total == 0


def test_preferred_contexts_follow_moves():
    hm = PositionHeatmap(board_size=8)
    tense = GameContext(player_score=0, ai_score=2, time_remaining=3.0)
    hm.update(make_move((0, 0), ctx=tense))
    hm.update(make_move((0, 0), ctx=tense))
    assert "losing" in hm.snapshot()[(0, 0)]["preferred_contexts"]
    assert "time_pressure" in hm.snapshot()[(0, 0)]["preferred_contexts"]


def test_hotspots_and_coldspots():
    hm = PositionHeatmap(board_size=3)
    for _ in range(5):
        hm.update(make_move((1, 1)))
    for _ in range(2):
        hm.update(make_move((0, 2)))
    hm.update(make_move((2, 0)))
    assert hm.hotspots(5) == [(1, 1)]
    assert hm.hotspots(2) == [(1, 1), (0, 2)]
    cold = hm.coldspots(2)
    assert (1, 1) not in cold and (0, 2) not in cold
    assert (2, 0) in cold and (0, 0) in cold
    assert len(cold) == 7


def test_intensity_grid_buckets():
    hm = PositionHeatmap(board_size=2)
    for _ in range(10):
        hm.update(make_move((0, 0)))
    for _ in range(4):
        hm.update(make_move((0, 1)))
    hm.update(make_move((1, 0)))
    assert hm.intensity_grid() == [[4, 2], [1, 0]]
    assert hm.render() == "#:\n. "


def test_similarity_and_favorites():
    hm = PositionHeatmap(board_size=8)
    for pos, n in (((3, 3), 4), ((5, 5), 2), ((0, 7), 1)):
        for _ in range(n):
            hm.update(make_move(pos))
    favorites = hm.favorite_positions(2)
    assert favorites == [(3, 3), (5, 5)]
    assert hm.similarity((3, 3), favorites) == 1.0
    assert hm.similarity((3, 4), favorites) == pytest.approx(1 - 1 / 8.0)
    assert hm.similarity((0, 0), []) == 0.0


def test_analytics_and_preference_patterns():
    hm = PositionHeatmap(board_size=4)
    for pos, n in (((0, 0), 6), ((1, 1), 3), ((2, 2), 1), ((3, 3), 1), ((0, 3), 1)):
        for _ in range(n):
            hm.update(make_move(pos, outcome="blocked" if pos == (3, 3) else "success"))
    a = hm.analytics()
    assert a["total_interactions"] == 12
    assert a["unique_positions"] == 5
    assert a["coverage_percentage"] == pytest.approx(100 * 5 / 16.0)
    assert a["hotspot_count"] == 1

    pats = {p.id: p for p in hm.preference_patterns(last_seen=42.0)}
    assert pats["pos_favorites"].payload["favorite_positions"] == [[0, 0]]
    assert pats["pos_favorites"].frequency == 6
    assert pats["pos_favorites"].payload["preferred_quadrants"] == ["top_left"]
    assert pats["pos_avoided"].payload["avoided_positions"] == [[3, 3]]
    assert "low_success" in pats["pos_avoided"].payload["avoidance_reasons"]
    assert pats["pos_avoided"].effectiveness == 1.0
    assert pats["pos_avoided"].last_seen == 42.0
