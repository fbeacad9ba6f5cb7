import random

from patternbrain import GameContext, Move, PatternEngine, StateStorage


def play_move(engine: PatternEngine, t: int, rnd: random.Random):
    ctx = GameContext(player_score=t // 4, ai_score=t // 3, moves_count=t, time_remaining=90.0 - t, difficulty=0.6)
    guesses = engine.predict(ctx, 3)
    # Simulated player: drifts along the diagonal, sometimes jumps
    pos = (t % 8, t % 8) if rnd.random() < 0.7 else (rnd.randrange(8), rnd.randrange(8))
    outcome = "success" if rnd.random() < 0.5 else "blocked"
    engine.record(Move(pos, timestamp=t * 1000.0, reaction_time=rnd.randint(250, 2500), context=ctx, outcome=outcome))
    return pos, guesses


def main():
    engine = PatternEngine()
    rnd = random.Random(3)
    for t in range(40):
        pos, guesses = play_move(engine, t, rnd)
        best = guesses[0]
        print(f"Move {t+1}: played={pos} guessed={best.position} p={best.probability:.2f} via={best.reasoning}")
    print(engine.position_heatmap.render())
    print(engine.metrics().to_dict())
    StateStorage("./patternbrain_state").save_session("demo", engine.export_state())


if __name__ == "__main__":
    main()
