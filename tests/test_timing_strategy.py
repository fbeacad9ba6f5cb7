import pytest

from patternbrain import GameContext
from patternbrain.strategy import DEFENSIVE, NEUTRAL, OFFENSIVE, StrategyDetector, default_classifier
from patternbrain.timing import analyze_timing

from conftest import make_move


def test_speed_buckets():
    moves = [make_move((0, i), t=i, rt=rt) for i, rt in enumerate([100, 100, 100, 1000, 1000])]
    pats = {p.id: p for p in analyze_timing(moves)}
    speed = pats["timing_speed"].payload
    assert speed["average_reaction_time"] == pytest.approx(460.0)
    assert speed["fast_moves"] == 3
    assert speed["slow_moves"] == 2
    assert pats["timing_speed"].effectiveness == 0.5
    assert pats["timing_speed"].confidence == pytest.approx(5 / 50.0)
    assert "timing_pressure" not in pats


def test_pressure_payload():
    tense = GameContext(time_remaining=4.0)
    moves = [make_move((1, 1), t=i, rt=500.0, ctx=tense, outcome="blocked" if i % 2 else "success")
             for i in range(6)]
    moves += [make_move((2, 2), t=10 + i, rt=1000.0) for i in range(4)]
    pats = {p.id: p for p in analyze_timing(moves)}
    p = pats["timing_pressure"]
    assert p.frequency == 6
    assert p.payload["pressure_reaction_time"] == pytest.approx(500.0)
    assert p.payload["normal_reaction_time"] == pytest.approx(1000.0)
    assert p.payload["pressure_speed_change"] == pytest.approx(-0.5)
    assert p.payload["pressure_performance_ratio"] == pytest.approx(0.5)
    assert p.payload["baseline_success_rate"] == pytest.approx(1.0)
    assert p.confidence == pytest.approx(6 / 20.0)
    assert p.last_seen == 5.0


def test_empty_history_has_no_timing():
    assert analyze_timing([]) == []


def test_default_classifier_rules():
    assert default_classifier(make_move((3, 4)), 8) == OFFENSIVE
    assert default_classifier(make_move((0, 5)), 8) == DEFENSIVE
    assert default_classifier(make_move((1, 1)), 8) == NEUTRAL
    assert default_classifier(make_move((1, 1), outcome="blocked"), 8) == DEFENSIVE
    assert default_classifier(make_move((0, 0), outcome="brilliant"), 8) == OFFENSIVE


def test_adaptation_detected_between_windows():
    moves = [make_move((3, 3), t=i) for i in range(10)]
    moves += [make_move((0, 0), t=10 + i) for i in range(10)]
    detector = StrategyDetector(board_size=8, window=10, delta=0.3)
    labels = detector.labels(moves)
    assert detector.window_ratios(labels) == [1.0, 0.0]
    assert detector.aggression_trend(labels) == pytest.approx(-1.0)

    instances = detector.adaptation_instances(moves, labels)
    assert len(instances) == 1
    inst = instances[0]
    assert inst["move_index"] == 10
    assert inst["speed"] == 10
    assert inst["direction"] == "more_defensive"
    assert inst["timestamp"] == 9.0

    pats = {p.id: p for p in detector.analyze(moves)}
    assert pats["strategy_aggression"].payload["offensive_ratio"] == 0.5
    assert pats["strategy_adaptation"].frequency == 1


def test_small_shift_is_not_adaptation():
    # 7 of 10 offensive, then 5 of 10
    moves = [make_move((3, 3) if i < 7 else (1, 1), t=i) for i in range(10)]
    moves += [make_move((3, 3) if i < 5 else (1, 1), t=10 + i) for i in range(10)]
    detector = StrategyDetector(board_size=8)
    ids = [p.id for p in detector.analyze(moves)]
    assert ids == ["strategy_aggression"]


def test_custom_classifier_is_used():
    detector = StrategyDetector(board_size=8, classifier=lambda m, n: "weird")
    assert detector.classify(make_move((3, 3))) == NEUTRAL
