from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .candidates import Candidate, find_combinations, opening_candidates, shedding_order
from .engine import draw_tile, record_event
from .meld import Group
from .move import MoveKind, TurnOutcome
from .state import GameState
from .tiles import Tile, tile_points

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    EXPERT = "expert"


class Strategy(str, Enum):
    RANDOM = "random"
    HIGHEST_SCORE = "highest_score"
    MOST_TILES = "most_tiles"


@dataclass(frozen=True)
class DifficultyConfig:
    mistake_rate: float
    uses_table_assist: bool
    strategy: Strategy


DIFFICULTY_CONFIGS: Dict[Difficulty, DifficultyConfig] = {
    Difficulty.EASY: DifficultyConfig(0.20, False, Strategy.RANDOM),
    Difficulty.NORMAL: DifficultyConfig(0.10, False, Strategy.HIGHEST_SCORE),
    Difficulty.HARD: DifficultyConfig(0.05, True, Strategy.MOST_TILES),
    Difficulty.EXPERT: DifficultyConfig(0.01, True, Strategy.MOST_TILES),
}


def _highest_score(candidates: List[Candidate]) -> Candidate:
    return sorted(candidates, key=lambda c: c.score, reverse=True)[0]


class AIPlayer:
    """Computer opponent bound to one seat of a game.

    The seat's hand, first-play flag and table score live in the game state;
    the player only keeps its own running score of points laid down.
    """

    def __init__(
        self,
        name: str,
        seat: int,
        difficulty: Difficulty | str = Difficulty.NORMAL,
        rng: Optional[random.Random] = None,
        config: Optional[DifficultyConfig] = None,
    ) -> None:
        self.name = name
        self.seat = seat
        self.difficulty = Difficulty(difficulty)
        self.config = config or DIFFICULTY_CONFIGS[self.difficulty]
        self.rng = rng or random.Random()
        self.score = 0

    def hand(self, state: GameState) -> List[Tile]:
        return state.hands[self.seat]

    def first_play_done(self, state: GameState) -> bool:
        return state.first_play_done[self.seat]

    def find_possible_combinations(self, state: GameState) -> List[Candidate]:
        return find_combinations(
            self.hand(state), state.table, use_table=self.config.uses_table_assist, ruleset=state.ruleset
        )

    def _makes_mistake(self) -> bool:
        return self.rng.random() < self.config.mistake_rate and self.rng.random() < 0.5

    def choose_best_play(self, state: GameState) -> Optional[Candidate]:
        if self._makes_mistake():
            logger.debug("%s hesitates and skips playing", self.name)
            return None

        candidates = self.find_possible_combinations(state)
        if not candidates:
            return None

        strategy = self.config.strategy
        if not self.first_play_done(state):
            minimum = state.ruleset.initial_meld_min_points
            opening = opening_candidates(candidates, minimum)
            if not opening:
                return None
            if strategy == Strategy.RANDOM:
                return self.rng.choice(opening)
            return _highest_score(opening)

        if strategy == Strategy.RANDOM:
            return self.rng.choice(candidates)
        if strategy == Strategy.HIGHEST_SCORE:
            return _highest_score(candidates)
        return shedding_order(candidates)[0]

    def _accepts(self, state: GameState, candidate: Candidate) -> Optional[int]:
        """Try the candidate on a scratch table; returns the target group index if it validates."""
        hand_ids = {t.id for t in self.hand(state)}
        if not all(t.id in hand_ids for t in candidate.tiles):
            return None
        scratch = state.table.clone()
        if candidate.add_to_group:
            index = candidate.group_index
            if index is None or not 0 <= index < len(scratch.groups) or not scratch.groups[index].valid:
                return None
            scratch.groups[index].tiles.extend(candidate.tiles)
        else:
            scratch.groups.append(Group(list(candidate.tiles)))
            index = len(scratch.groups) - 1
        scratch.validate(state.ruleset.values, state.ruleset.max_set_size)
        return index if scratch.groups[index].valid else None

    def apply_play(self, state: GameState, candidate: Candidate) -> Optional[TurnOutcome]:
        index = self._accepts(state, candidate)
        if index is None:
            logger.debug("%s: candidate %s rejected by validation", self.name, [str(t) for t in candidate.tiles])
            return None

        tiles = list(candidate.tiles)
        if candidate.add_to_group:
            state.table.groups[index].tiles.extend(tiles)
        else:
            state.table.groups.append(Group(tiles))
        state.validate_table()

        played_ids = {t.id for t in tiles}
        state.hands[self.seat] = [t for t in self.hand(state) if t.id not in played_ids]
        score = tile_points(tiles, state.ruleset.joker_points)
        self.score += score
        state.first_play_done[self.seat] = True
        state.scores[self.seat] = state.calculate_table_score()
        state.turn.has_played = True
        record_event(state, MoveKind.PLAY, {"tiles": sorted(played_ids), "table": state.table.layout()})

        remaining = len(self.hand(state))
        logger.info("%s played %d tiles for %d points (%d left)", self.name, len(tiles), score, remaining)
        if remaining == 0:
            state.winner = self.seat
            logger.info("%s emptied their hand and wins", self.name)
        return TurnOutcome.play(tiles, score, index, candidate.add_to_group, remaining)

    def play(self, state: GameState) -> Optional[TurnOutcome]:
        if state.current_player != self.seat or state.winner is not None:
            return None
        best = self.choose_best_play(state)
        if best is None:
            return None
        return self.apply_play(state, best)

    def draw_tile(self, state: GameState) -> Optional[Tile]:
        if state.current_player != self.seat:
            return None
        return draw_tile(state)

    def take_turn(self, state: GameState) -> TurnOutcome:
        """Play if possible, otherwise draw, otherwise pass. Does not advance the turn."""
        outcome = self.play(state)
        if outcome is not None:
            return outcome
        tile = self.draw_tile(state)
        if tile is not None:
            logger.info("%s drew a tile", self.name)
            return TurnOutcome.draw(tile, len(self.hand(state)))
        logger.info("%s cannot draw and passes", self.name)
        if state.current_player == self.seat and state.winner is None:
            record_event(state, MoveKind.PASS, {})
        return TurnOutcome.skip(len(self.hand(state)))
