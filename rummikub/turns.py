"""Turn sequencing driven by an external scheduler.

Nothing here sleeps or spawns threads. A UI loop (or a test) calls
``GameSession.tick`` once per elapsed second and ``GameSession.step_ai``
when an AI seat's think delay has passed; every call is a synchronous state
transition on the session's ``GameState``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from . import engine
from .ai import AIPlayer, Difficulty
from .candidates import Candidate, HandOrder, arrange_hand, rank_combinations
from .move import PlayResult, TurnOutcome
from .rules import Ruleset
from .state import GameState, new_game
from .tiles import Tile

logger = logging.getLogger(__name__)


class TimerLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    DANGER = "danger"


class TurnTimer:
    def __init__(self, limit: int = 30, warning_at: int = 15, danger_at: int = 10) -> None:
        self.limit = limit
        self.warning_at = warning_at
        self.danger_at = danger_at
        self.remaining = limit
        self.running = False
        self.paused = False

    def start(self) -> None:
        self.remaining = self.limit
        self.running = True
        self.paused = False

    def stop(self) -> None:
        self.running = False

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def tick(self, seconds: int = 1) -> bool:
        """Advance the clock; True exactly once, when it runs out."""
        if not self.running or self.paused:
            return False
        self.remaining = max(0, self.remaining - seconds)
        if self.remaining == 0:
            self.running = False
            return True
        return False

    @property
    def level(self) -> TimerLevel:
        if self.remaining <= self.danger_at:
            return TimerLevel.DANGER
        if self.remaining <= self.warning_at:
            return TimerLevel.WARNING
        return TimerLevel.NORMAL


@dataclass(frozen=True)
class GameResult:
    winner: Optional[int]
    winner_name: Optional[str]
    scores: List[int]
    hand_sizes: List[int]
    difficulty: Difficulty
    turns: int
    won: bool


@dataclass
class GameSession:
    """One game: the shared state, the AI seats and the human turn timer."""

    difficulty: Difficulty = Difficulty.NORMAL
    ruleset: Ruleset = field(default_factory=Ruleset)
    rng_seed: Optional[int] = None
    human_seats: Tuple[int, ...] = (0,)
    state: Optional[GameState] = None
    ai_players: Dict[int, AIPlayer] = field(default_factory=dict)
    timer: TurnTimer = field(init=False)
    paused: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.difficulty = Difficulty(self.difficulty)
        self.human_seats = tuple(self.human_seats)
        if self.state is None:
            self.state = new_game(self.ruleset, self.rng_seed)
        else:
            self.ruleset = self.state.ruleset
        self.timer = TurnTimer(self.ruleset.turn_time_limit, self.ruleset.timer_warning_at, self.ruleset.timer_danger_at)
        if not self.ai_players:
            self.ai_players = self._make_ai_players()
        self._start_turn_clock()

    def _make_ai_players(self) -> Dict[int, AIPlayer]:
        rng = random.Random(self.rng_seed)
        players = {}
        number = 1
        for seat in range(self.ruleset.num_players):
            if seat in self.human_seats:
                continue
            players[seat] = AIPlayer(f"AI {number}", seat, self.difficulty, rng=random.Random(rng.random()))
            number += 1
        return players

    def _start_turn_clock(self) -> None:
        if self.is_human_turn() and self.state.winner is None:
            self.timer.start()
            if self.paused:
                self.timer.pause()
        else:
            self.timer.stop()

    def new_game(self, difficulty: Difficulty | str | None = None, rng_seed: Optional[int] = None) -> None:
        if difficulty is not None:
            self.difficulty = Difficulty(difficulty)
        self.rng_seed = rng_seed
        self.state = new_game(self.ruleset, rng_seed)
        self.ai_players = self._make_ai_players()
        self.paused = False
        self._start_turn_clock()
        logger.info("new %s game with %d seats", self.difficulty.value, self.ruleset.num_players)

    # -- queries --------------------------------------------------------

    def is_human_turn(self) -> bool:
        return self.state.current_player in self.human_seats

    def is_over(self) -> bool:
        return self.state.winner is not None

    def _human_may_act(self) -> bool:
        return self.is_human_turn() and not self.paused

    def seat_name(self, seat: int) -> str:
        player = self.ai_players.get(seat)
        return player.name if player else f"Player {seat + 1}"

    def status(self) -> dict:
        state = self.state
        return {
            "current_player": state.current_player,
            "hand": list(state.current_hand),
            "hand_sizes": state.hand_sizes(),
            "table": [(group.kind, group.valid, list(group.tiles)) for group in state.table.groups],
            "scores": list(state.scores),
            "pack_count": state.pack_count(),
            "has_drawn": state.turn.has_drawn,
            "has_played": state.turn.has_played,
            "can_undo": engine.can_undo(state),
            "can_play": engine.can_play(state),
            "timer": self.timer.remaining,
            "paused": self.paused,
            "winner": state.winner,
        }

    def suggestions(self) -> List[Candidate]:
        """Ranked plays for the acting hand; openings only until the seat has opened."""
        if self.paused:
            return []
        state = self.state
        return rank_combinations(state.current_hand, state.table, self.ruleset, first_play=state.is_first_play())

    def suggest(self) -> Optional[Candidate]:
        ranked = self.suggestions()
        return ranked[0] if ranked else None

    def next_action_delay(self) -> Optional[float]:
        """Seconds the scheduler should wait before ``step_ai``; None on a human turn or while paused."""
        if self.is_over() or self.is_human_turn() or self.paused:
            return None
        return self.ruleset.ai_think_delay

    # -- pause ----------------------------------------------------------

    def pause(self) -> None:
        if self.is_over() or self.paused:
            return
        self.paused = True
        self.timer.pause()
        logger.info("game paused with %d seconds left", self.timer.remaining)

    def resume(self) -> None:
        if not self.paused:
            return
        self.paused = False
        self.timer.resume()
        logger.info("game resumed")

    # -- human actions --------------------------------------------------

    def arrange_hand(self, order: HandOrder | str = HandOrder.COLOR) -> List[Tile]:
        """Reorder the human hand in place; ordering never changes what can be played."""
        if not self._human_may_act():
            return list(self.state.current_hand)
        seat = self.state.current_player
        self.state.hands[seat] = arrange_hand(self.state.hands[seat], order, self.ruleset)
        return list(self.state.hands[seat])

    def place(self, tile: Tile, group_index: Optional[int] = None) -> bool:
        if not self._human_may_act():
            return False
        return engine.place_tile_on_table(self.state, tile, group_index)

    def place_many(self, tiles: Iterable[Tile], group_index: Optional[int] = None) -> bool:
        """Place tiles one after another into the same group (a new one if no index)."""
        target = group_index
        for tile in tiles:
            if not self.place(tile, target):
                return False
            if target is None:
                target = len(self.state.table.groups) - 1
        return True

    def draw(self) -> Optional[Tile]:
        if not self._human_may_act():
            return None
        return engine.draw_tile(self.state)

    def play(self) -> PlayResult:
        if not self._human_may_act():
            return PlayResult(False, "game is paused" if self.paused else "not your turn")
        result = engine.play(self.state)
        if self.is_over():
            self.timer.stop()
        return result

    def undo(self) -> List[Tile]:
        if not self._human_may_act():
            return []
        return engine.undo_placements(self.state)

    def reset_turn(self) -> None:
        if self._human_may_act():
            engine.reset_turn(self.state)

    def pass_turn(self) -> Tuple[bool, str]:
        if not self._human_may_act():
            return False, "not your turn"
        ok, reason = engine.pass_turn(self.state)
        if ok:
            self._start_turn_clock()
        return ok, reason

    def end_turn(self) -> List[Tile]:
        returned = engine.end_turn(self.state)
        self._start_turn_clock()
        return returned

    # -- scheduler callbacks -------------------------------------------

    def tick(self, seconds: int = 1) -> Optional[TurnOutcome]:
        if self.timer.tick(seconds):
            return self.on_timeout()
        return None

    def on_timeout(self) -> TurnOutcome:
        """Out of time: draw if the seat has not drawn yet, then hand over."""
        state = self.state
        seat = state.current_player
        tile = None
        if not state.turn.has_drawn:
            tile = engine.draw_tile(state)
            logger.info("seat %d ran out of time%s", seat, ", drawing a tile" if tile else "")
        self.end_turn()
        remaining = len(state.hands[seat])
        if tile is not None:
            return TurnOutcome.draw(tile, remaining)
        return TurnOutcome.skip(remaining)

    def step_ai(self) -> Optional[TurnOutcome]:
        """Let the AI seat whose turn it is act, then advance unless it won."""
        if self.is_over() or self.is_human_turn() or self.paused:
            return None
        player = self.ai_players[self.state.current_player]
        outcome = player.take_turn(self.state)
        if self.is_over():
            self.timer.stop()
        else:
            self.end_turn()
        return outcome

    def run_ai_turns(self) -> List[TurnOutcome]:
        outcomes = []
        while not self.is_over() and not self.is_human_turn() and not self.paused:
            outcomes.append(self.step_ai())
        return outcomes

    def result(self) -> GameResult:
        state = self.state
        winner = state.winner
        return GameResult(
            winner=winner,
            winner_name=None if winner is None else self.seat_name(winner),
            scores=list(state.scores),
            hand_sizes=state.hand_sizes(),
            difficulty=self.difficulty,
            turns=state.turn_number,
            won=winner is not None and winner in self.human_seats,
        )

    # -- persistence ----------------------------------------------------

    def to_dict(self) -> dict:
        """JSON-ready snapshot; AI random streams and the clock resume where they stopped."""
        return {
            "difficulty": self.difficulty.value,
            "human_seats": list(self.human_seats),
            "rng_seed": self.rng_seed,
            "ai_scores": {str(seat): player.score for seat, player in self.ai_players.items()},
            "ai_rng": {str(seat): _rng_state_to_list(player.rng) for seat, player in self.ai_players.items()},
            "timer": {"remaining": self.timer.remaining, "running": self.timer.running},
            "paused": self.paused,
            "state": self.state.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameSession":
        try:
            state = GameState.from_dict(data["state"])
            session = cls(
                difficulty=Difficulty(data["difficulty"]),
                ruleset=state.ruleset,
                rng_seed=data.get("rng_seed"),
                human_seats=tuple(data.get("human_seats", (0,))),
                state=state,
            )
        except KeyError as exc:
            raise ValueError(f"malformed session snapshot: missing {exc}") from exc
        for seat, score in data.get("ai_scores", {}).items():
            if int(seat) in session.ai_players:
                session.ai_players[int(seat)].score = score
        for seat, rng_state in data.get("ai_rng", {}).items():
            if int(seat) in session.ai_players:
                session.ai_players[int(seat)].rng.setstate(_rng_state_from_list(rng_state))
        timer = data.get("timer")
        if timer is not None:
            session.timer.remaining = int(timer["remaining"])
            session.timer.running = bool(timer["running"])
        if data.get("paused"):
            session.pause()
        return session


def _rng_state_to_list(rng: random.Random) -> list:
    version, internal, gauss_next = rng.getstate()
    return [version, list(internal), gauss_next]


def _rng_state_from_list(data: list) -> tuple:
    try:
        version, internal, gauss_next = data
        return version, tuple(int(word) for word in internal), gauss_next
    except (TypeError, ValueError) as exc:
        raise ValueError("malformed random generator state") from exc
