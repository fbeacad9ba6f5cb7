import pytest

from patternbrain import GameContext, Move


def make_move(pos, t=0, rt=1000.0, outcome="success", ctx=None):
    return Move(
        position=tuple(pos),
        timestamp=float(t),
        reaction_time=float(rt),
        context=ctx if ctx is not None else GameContext(),
        outcome=outcome,
    )


@pytest.fixture
def move():
    return make_move
