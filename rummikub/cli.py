from __future__ import annotations

import argparse
import logging
from typing import Optional

from .ai import Difficulty
from .move import MoveKind
from .rules import Ruleset
from .turns import GameSession


def run_game(
    seed: Optional[int] = None,
    difficulty: Difficulty | str = Difficulty.NORMAL,
    max_turns: int = 500,
    num_players: int = 4,
) -> GameSession:
    """Play a game between AI seats only, stopping after ``max_turns`` turns."""
    session = GameSession(
        difficulty=Difficulty(difficulty),
        ruleset=Ruleset(num_players=num_players),
        rng_seed=seed,
        human_seats=(),
    )
    for _ in range(max_turns):
        if session.is_over():
            break
        if session.state.pack.is_empty() and _stalled(session):
            break
        session.step_ai()
    return session


def _stalled(session: GameSession) -> bool:
    # with an empty pack a full round of passes means nobody can move again
    log = session.state.event_log
    seats = session.ruleset.num_players
    return len(log) >= seats and all(event.move_kind == MoveKind.PASS.value for event in log[-seats:])


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate a Rummikub game between AI players.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible games.")
    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=Difficulty.NORMAL.value,
        help="AI difficulty tier.",
    )
    parser.add_argument("--players", type=int, default=4, help="Number of seats.")
    parser.add_argument("--max-turns", type=int, default=500, help="Turn limit for the simulation.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    session = run_game(seed=args.seed, difficulty=args.difficulty, max_turns=args.max_turns, num_players=args.players)
    result = session.result()
    print(f"Game finished after {result.turns} turns")
    if result.winner is not None:
        print(f"Winner: {result.winner_name}")
    else:
        print("No winner (turn limit reached or pack exhausted)")
    print("Hand sizes:", result.hand_sizes)
    print("Scores:", result.scores)
    print("Table groups:", len(session.state.table))


if __name__ == "__main__":
    main()
