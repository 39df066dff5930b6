"""Rummikub rules engine and AI opponents."""

from .rules import Ruleset
from .tiles import Color, Pack, Tile, TileIdFactory, TileKind
from .meld import Group, GroupKind, is_valid_run, is_valid_set
from .table import Table
from .state import GameState, GameEvent, TurnState, new_game
from .move import MoveKind, PlayCheck, PlayResult, TurnOutcome
from .engine import (
    can_play,
    can_undo,
    check_play,
    draw_tile,
    end_turn,
    next_player,
    pass_turn,
    place_tile_on_table,
    play,
    reset_turn,
    return_tiles_to_hand,
    undo_placements,
)
from .candidates import Candidate, HandOrder, arrange_hand, find_combinations, rank_combinations, suggest_combination
from .ai import AIPlayer, Difficulty, DifficultyConfig, DIFFICULTY_CONFIGS
from .turns import GameResult, GameSession, TurnTimer

__all__ = [
    "Ruleset",
    "Color",
    "Pack",
    "Tile",
    "TileIdFactory",
    "TileKind",
    "Group",
    "GroupKind",
    "is_valid_run",
    "is_valid_set",
    "Table",
    "GameState",
    "GameEvent",
    "TurnState",
    "new_game",
    "MoveKind",
    "PlayCheck",
    "PlayResult",
    "TurnOutcome",
    "can_play",
    "can_undo",
    "check_play",
    "draw_tile",
    "end_turn",
    "next_player",
    "pass_turn",
    "place_tile_on_table",
    "play",
    "reset_turn",
    "return_tiles_to_hand",
    "undo_placements",
    "Candidate",
    "HandOrder",
    "arrange_hand",
    "find_combinations",
    "rank_combinations",
    "suggest_combination",
    "AIPlayer",
    "Difficulty",
    "DifficultyConfig",
    "DIFFICULTY_CONFIGS",
    "GameResult",
    "GameSession",
    "TurnTimer",
]
