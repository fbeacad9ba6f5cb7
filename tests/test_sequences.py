from collections import Counter

import pytest

from patternbrain.sequences import (
    continuations,
    mine_sequences,
    movement_analytics,
    movement_efficiency,
    movement_predictability,
    sequence_key,
    similarity,
    touch_up,
)

from conftest import make_move


def test_sequence_key_is_ordered():
    assert sequence_key([(1, 2), (3, 4)]) == "1-2|3-4"
    assert sequence_key([(3, 4), (1, 2)]) != sequence_key([(1, 2), (3, 4)])


def test_mine_counts_windows_and_effectiveness():
    loop = [(0, 0), (0, 1), (0, 2)]
    outcomes = ["success", "success", "blocked"] * 2 + ["success"] * 3
    moves = [make_move(p, t=i, outcome=o) for i, (p, o) in enumerate(zip(loop * 3, outcomes))]
    patterns = mine_sequences(moves, window=3, min_frequency=3)
    assert [p.id for p in patterns] == ["seq_0-0|0-1|0-2"]
    p = patterns[0]
    assert p.frequency == 3
    # two of the three occurrences ended on a blocked move
    assert p.effectiveness == pytest.approx(1 / 3.0)
    assert p.last_seen == 8.0
    assert p.payload["sequence"] == [[0, 0], [0, 1], [0, 2]]


def test_confidence_saturates():
    moves = [make_move((1, 1), t=i) for i in range(30)]
    patterns = mine_sequences(moves)
    assert patterns[0].frequency == 28
    assert patterns[0].confidence == 1.0


def test_short_history_yields_nothing():
    assert mine_sequences([make_move((0, 0)), make_move((0, 1))]) == []


def test_similarity():
    assert similarity([(0, 0), (1, 1)], [(0, 0), (1, 1)]) == 1.0
    assert similarity([(0, 0), (1, 1)], [(0, 0), (2, 2)]) == 0.5
    assert similarity([], [(0, 0)]) == 0.0


def test_continuations_respect_threshold():
    path = [(0, 0), (1, 1), (2, 2), (0, 0), (1, 1), (3, 3), (5, 5), (1, 1), (4, 4)]
    moves = [make_move(p, t=i) for i, p in enumerate(path)]
    votes = continuations(moves, [(0, 0), (1, 1)], window=3, threshold=0.7)
    assert votes == Counter({(2, 2): 1.0, (3, 3): 1.0})
    loose = continuations(moves, [(0, 0), (1, 1)], window=3, threshold=0.5)
    # (5, 5) -> (1, 1) shares the second cell and now votes for (4, 4)
    assert loose[(4, 4)] == 0.5


def test_touch_up_refreshes_recency_only():
    loop = [(0, 0), (0, 1), (0, 2)]
    moves = [make_move(p, t=i) for i, p in enumerate(loop * 3)]
    pattern = mine_sequences(moves)[0]
    trailing = [make_move(p, t=100 + i) for i, p in enumerate(loop)]
    refreshed = touch_up(pattern, trailing)
    assert refreshed.last_seen == 102.0
    assert refreshed.frequency == pattern.frequency
    assert touch_up(pattern, trailing[::-1]) is None


def test_movement_efficiency_and_predictability():
    straight = [make_move((0, c), t=c) for c in range(5)]
    assert movement_efficiency(straight) == pytest.approx(1.0)
    assert movement_predictability(straight) == pytest.approx(0.75)
    zigzag = [make_move(p, t=10 + 2 * i) for i, p in enumerate([(5, 5), (6, 6), (5, 5), (6, 6), (5, 5)])]
    assert movement_efficiency(zigzag) == pytest.approx(2 ** 0.5 / 2)
    assert movement_predictability(zigzag) == 0.0
    # no time passed
    assert movement_efficiency([make_move((0, 0)), make_move((3, 4))]) == 0.0
    assert movement_predictability(straight[:2]) == 0.0


def test_movement_analytics_segments():
    straight = [make_move((0, c), t=c) for c in range(5)]
    zigzag = [make_move(p, t=10 + 2 * i) for i, p in enumerate([(5, 5), (6, 6), (5, 5), (6, 6), (5, 5)])]
    a = movement_analytics(straight + zigzag, segment=5)
    assert a["total_sequences"] == 2
    assert a["average_efficiency"] == pytest.approx((1.0 + 2 ** 0.5 / 2) / 2)
    assert a["average_predictability"] == pytest.approx(0.375)
    assert a["most_efficient_sequence"]["sequence"] == [[0, c] for c in range(5)]
    assert a["most_predictable_sequence"]["predictability"] == pytest.approx(0.75)

    # a lone trailing move is not a segment; only the latest segments are kept
    assert movement_analytics(straight + zigzag + [make_move((1, 1), t=99)])["total_sequences"] == 2
    assert movement_analytics(straight + zigzag, history=1)["most_efficient_sequence"]["sequence"][0] == [5, 5]


def test_movement_analytics_empty():
    a = movement_analytics([make_move((0, 0))])
    assert a["total_sequences"] == 0
    assert a["average_efficiency"] == 0.0
    assert a["most_efficient_sequence"] is None
    assert a["most_predictable_sequence"] is None
