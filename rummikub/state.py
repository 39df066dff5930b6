from __future__ import annotations

import hashlib
import random
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .rules import Ruleset
from .table import Table
from .tiles import Color, Pack, Tile, TileIdFactory, sort_tiles


@dataclass
class GameEvent:
    player: int
    move_kind: str
    payload: dict


@dataclass
class TurnState:
    """Per-turn bookkeeping for the acting seat."""

    original_hand: List[Tile] = field(default_factory=list)
    original_table: Table = field(default_factory=Table)
    tiles_before_draw: List[List[int]] = field(default_factory=list)
    tiles_placed_this_turn: Set[int] = field(default_factory=set)
    has_drawn: bool = False
    has_played: bool = False

    def clear_tracking(self) -> None:
        self.tiles_before_draw = []
        self.tiles_placed_this_turn.clear()

    def before_draw_ids(self) -> Set[int]:
        return {tile_id for group in self.tiles_before_draw for tile_id in group}

    def to_dict(self) -> dict:
        return {
            "original_hand": [t.to_dict() for t in self.original_hand],
            "original_table": self.original_table.to_list(),
            "tiles_before_draw": [list(group) for group in self.tiles_before_draw],
            "tiles_placed_this_turn": sorted(self.tiles_placed_this_turn),
            "has_drawn": self.has_drawn,
            "has_played": self.has_played,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TurnState":
        return cls(
            original_hand=[Tile.from_dict(t) for t in data.get("original_hand", [])],
            original_table=Table.from_list(data.get("original_table", [])),
            tiles_before_draw=[list(group) for group in data.get("tiles_before_draw", [])],
            tiles_placed_this_turn=set(data.get("tiles_placed_this_turn", [])),
            has_drawn=bool(data.get("has_drawn", False)),
            has_played=bool(data.get("has_played", False)),
        )


@dataclass
class GameState:
    ruleset: Ruleset
    pack: Pack
    hands: List[List[Tile]]
    table: Table
    first_play_done: List[bool]
    scores: List[int]
    current_player: int = 0
    turn: TurnState = field(default_factory=TurnState)
    turn_number: int = 0
    next_tile_id: TileIdFactory = field(default_factory=TileIdFactory, repr=False)
    rng_seed: Optional[int] = None
    event_log: List[GameEvent] = field(default_factory=list)
    winner: Optional[int] = None

    @property
    def current_hand(self) -> List[Tile]:
        return self.hands[self.current_player]

    def is_first_play(self, seat: Optional[int] = None) -> bool:
        seat = self.current_player if seat is None else seat
        return not self.first_play_done[seat]

    def validate_table(self) -> None:
        self.table.validate(self.ruleset.values, self.ruleset.max_set_size)

    def calculate_table_score(self, exclude_jokers: bool = False) -> int:
        return self.table.score(exclude_jokers=exclude_jokers, joker_points=self.ruleset.joker_points)

    def snapshot_turn_start(self) -> None:
        self.turn.original_hand = [t.clone() for t in self.current_hand]
        self.turn.original_table = self.table.clone()

    def pack_count(self) -> int:
        return self.pack.count()

    def hand_sizes(self) -> List[int]:
        return [len(hand) for hand in self.hands]

    def owned_tile_ids(self) -> List[int]:
        """Every tile id held by the pack, a hand or the table (duplicates included)."""
        ids = [t.id for t in self.pack.tiles]
        for hand in self.hands:
            ids.extend(t.id for t in hand)
        ids.extend(t.id for t in self.table.all_tiles())
        return ids

    def copy(self) -> "GameState":
        return GameState.from_dict(self.to_dict())

    def state_key(self) -> Tuple:
        return (
            self.current_player,
            self.turn_number,
            tuple(t.id for t in self.pack.tiles),
            tuple(tuple(t.id for t in hand) for hand in self.hands),
            self.table.canonical_key(),
            tuple(self.first_play_done),
            tuple(self.scores),
            self.winner,
        )

    def stable_hash(self) -> str:
        return hashlib.sha256(repr(self.state_key()).encode("utf-8")).hexdigest()

    def to_dict(self) -> dict:
        ruleset = asdict(self.ruleset)
        ruleset["colors"] = [Color(c).value for c in self.ruleset.colors]
        return {
            "ruleset": ruleset,
            "pack": self.pack.to_list(),
            "hands": [[t.to_dict() for t in hand] for hand in self.hands],
            "table": self.table.to_list(),
            "first_play_done": list(self.first_play_done),
            "scores": list(self.scores),
            "current_player": self.current_player,
            "turn": self.turn.to_dict(),
            "turn_number": self.turn_number,
            "rng_seed": self.rng_seed,
            "event_log": [asdict(event) for event in self.event_log],
            "winner": self.winner,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameState":
        try:
            ruleset_data: Dict = dict(data["ruleset"])
            ruleset_data["colors"] = tuple(Color(c) for c in ruleset_data["colors"])
            ruleset = Ruleset(**ruleset_data)
            state = cls(
                ruleset=ruleset,
                pack=Pack.from_list(data["pack"]),
                hands=[[Tile.from_dict(t) for t in hand] for hand in data["hands"]],
                table=Table.from_list(data["table"]),
                first_play_done=list(data["first_play_done"]),
                scores=list(data["scores"]),
                current_player=int(data["current_player"]),
                turn=TurnState.from_dict(data["turn"]),
                turn_number=int(data.get("turn_number", 0)),
                rng_seed=data.get("rng_seed"),
                event_log=[GameEvent(**event) for event in data.get("event_log", [])],
                winner=data.get("winner"),
            )
        except KeyError as exc:
            raise ValueError(f"malformed game snapshot: missing {exc}") from exc
        if len(state.hands) != ruleset.num_players:
            raise ValueError("snapshot seat count does not match its ruleset")
        state.next_tile_id.advance_past(state.owned_tile_ids())
        state.validate_table()
        return state


def _deal_initial_hands(pack: Pack, ruleset: Ruleset) -> List[List[Tile]]:
    hands: List[List[Tile]] = [[] for _ in range(ruleset.num_players)]
    for _ in range(ruleset.initial_hand_size):
        for player in range(ruleset.num_players):
            tile = pack.draw()
            if tile is not None:
                hands[player].append(tile)
    for hand in hands:
        sort_tiles(hand)
    return hands


def new_game(
    ruleset: Ruleset | None = None,
    rng_seed: Optional[int] = None,
    next_tile_id: Optional[TileIdFactory] = None,
) -> GameState:
    ruleset = ruleset or Ruleset()
    rng = random.Random(rng_seed)
    next_tile_id = next_tile_id or TileIdFactory()
    pack = Pack.full(ruleset, rng, next_tile_id)
    hands = _deal_initial_hands(pack, ruleset)
    state = GameState(
        ruleset=ruleset,
        pack=pack,
        hands=hands,
        table=Table([]),
        first_play_done=[False] * ruleset.num_players,
        scores=[0] * ruleset.num_players,
        current_player=0,
        next_tile_id=next_tile_id,
        rng_seed=rng_seed,
    )
    state.snapshot_turn_start()
    return state
