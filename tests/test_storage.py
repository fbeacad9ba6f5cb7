import numpy as np
import pytest

from patternbrain import PatternEngine, StateStorage

from conftest import make_move


def test_filesystem_round_trip(tmp_path, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    storage = StateStorage(str(tmp_path))
    engine = PatternEngine()
    for i in range(12):
        engine.record(make_move((i % 3, 1), t=i))
    storage.save_session("alpha", engine.export_state())

    assert storage.list_sessions() == ["alpha"]
    blob = storage.load_session("alpha")
    restored = PatternEngine()
    restored.import_state(blob)
    assert restored.heatmap() == engine.heatmap()
    assert restored.history() == engine.history()


def test_missing_and_delete(tmp_path, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    storage = StateStorage(str(tmp_path))
    assert storage.load_session("nobody") is None
    assert storage.delete_session("nobody") is False
    storage.save_session("b", {"version": 1})
    storage.save_session("a", {"version": 1})
    assert storage.list_sessions() == ["a", "b"]
    assert storage.delete_session("a") is True
    assert storage.list_sessions() == ["b"]


def test_numpy_values_serialize(tmp_path, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    storage = StateStorage(str(tmp_path))
    storage.save_session("np", {"grid": np.zeros((2, 2)), "n": np.int64(3)})
    assert storage.load_session("np") == {"grid": [[0.0, 0.0], [0.0, 0.0]], "n": 3}


@pytest.mark.parametrize("sid", ["", "a.b", "../etc", "a b"])
def test_rejects_ids_that_would_be_rewritten(tmp_path, monkeypatch, sid):
    monkeypatch.delenv("REDIS_URL", raising=False)
    storage = StateStorage(str(tmp_path))
    storage.save_session("ab", {"version": 1})
    with pytest.raises(ValueError):
        storage.save_session(sid, {"version": 2})
    with pytest.raises(ValueError):
        storage.load_session(sid)
    assert storage.load_session("ab") == {"version": 1}
    assert storage.list_sessions() == ["ab"]
