from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .tiles import Tile


class MoveKind(str, Enum):
    DRAW = "DRAW"
    PASS = "PASS"
    PLAY = "PLAY"


@dataclass(frozen=True)
class PlayCheck:
    can_play: bool
    tiles_to_return: List[Tile] = field(default_factory=list)
    reason: str = ""

    def __bool__(self) -> bool:
        return self.can_play


@dataclass(frozen=True)
class PlayResult:
    ok: bool
    reason: str = ""
    returned_tiles: List[Tile] = field(default_factory=list)
    score: int = 0

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class TurnOutcome:
    """What a seat did with its turn, as reported to the scheduler."""

    kind: MoveKind
    tiles: List[Tile] = field(default_factory=list)
    score: int = 0
    group_index: Optional[int] = None
    added_to_group: bool = False
    remaining: int = 0

    @staticmethod
    def draw(tile: Tile, remaining: int) -> "TurnOutcome":
        return TurnOutcome(MoveKind.DRAW, [tile], remaining=remaining)

    @staticmethod
    def skip(remaining: int) -> "TurnOutcome":
        return TurnOutcome(MoveKind.PASS, remaining=remaining)

    @staticmethod
    def play(
        tiles: List[Tile], score: int, group_index: int, added_to_group: bool, remaining: int
    ) -> "TurnOutcome":
        return TurnOutcome(MoveKind.PLAY, list(tiles), score, group_index, added_to_group, remaining)
