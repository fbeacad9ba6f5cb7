import json
import random
from typing import Dict

from patternbrain import GameContext, Move, PatternEngine


def simulate_session(engine: PatternEngine, n_moves: int = 200, player_type: str = "mixed", seed: int = 7) -> Dict:
    rnd = random.Random(seed)
    size = engine.config.board_size
    loop = [(2, 2), (3, 3), (4, 4), (3, 3)]

    # simple synthetic players
    def player_move(t: int):
        if player_type == "loop":
            return loop[t % len(loop)]
        elif player_type == "sticky":
            return (3, 4) if rnd.random() < 0.6 else (rnd.randrange(size), rnd.randrange(size))
        else:  # mixed
            return (rnd.randrange(size), rnd.randrange(size))

    hits = 0
    for t in range(n_moves):
        ctx = GameContext(
            player_score=t // 7,
            ai_score=t // 6,
            moves_count=t,
            time_remaining=max(0.0, 120.0 - t * 0.6),
            difficulty=0.5,
        )
        guesses = [c.position for c in engine.predict(ctx, 3)]
        pos = player_move(t)
        if pos in guesses:
            hits += 1
        outcome = "success" if rnd.random() < 0.6 else rnd.choice(["blocked", "suboptimal", "brilliant"])
        engine.record(Move(pos, timestamp=t * 1500.0, reaction_time=rnd.uniform(300, 2500), context=ctx, outcome=outcome))
    return {"top3_hit_rate": hits / n_moves, "patterns": len(engine.patterns())}


def run_ab():
    out = {}
    for kind in ("loop", "sticky", "mixed"):
        out[kind] = simulate_session(PatternEngine(), player_type=kind)
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    run_ab()
