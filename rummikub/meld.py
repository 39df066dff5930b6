from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .tiles import Tile


class GroupKind(str, Enum):
    SET = "set"
    RUN = "run"
    INCOMPLETE = "incomplete"


def _split(tiles: Sequence[Tile]) -> Tuple[List[Tile], int]:
    regular = [t for t in tiles if not t.is_joker]
    return regular, len(tiles) - len(regular)


def is_valid_set(tiles: Sequence[Tile], max_size: int = 4) -> bool:
    """Same number, pairwise-distinct colours; jokers stand in for missing colours."""
    regular, _ = _split(tiles)
    if not regular:
        return False
    if len(tiles) < 3 or len(tiles) > max_size:
        return False
    if len({t.number for t in regular}) > 1:
        return False
    colors = [t.color for t in regular]
    return len(colors) == len(set(colors))


def is_valid_run(tiles: Sequence[Tile], values: int = 13) -> bool:
    """Same colour, consecutive numbers.

    Jokers fill internal gaps first. Any jokers left over extend the run at
    either end, so the run is only valid while it still fits in 1..values.
    """
    regular, jokers = _split(tiles)
    if not regular:
        return False
    if len(tiles) < 3 or len(tiles) > values:
        return False
    if len({t.color for t in regular}) > 1:
        return False
    numbers = sorted(t.number for t in regular)
    gaps = 0
    for prev, nxt in zip(numbers, numbers[1:]):
        if nxt == prev:
            return False
        gaps += nxt - prev - 1
    return gaps <= jokers


def classify_tiles(tiles: Sequence[Tile], values: int = 13, max_set_size: int = 4) -> GroupKind:
    if len(tiles) < 3:
        return GroupKind.INCOMPLETE
    if is_valid_set(tiles, max_set_size):
        return GroupKind.SET
    if is_valid_run(tiles, values):
        return GroupKind.RUN
    return GroupKind.INCOMPLETE


@dataclass
class Group:
    tiles: List[Tile] = field(default_factory=list)
    kind: GroupKind = GroupKind.INCOMPLETE
    valid: bool = False

    def validate(self, values: int = 13, max_set_size: int = 4) -> bool:
        self.kind = classify_tiles(self.tiles, values, max_set_size)
        self.valid = self.kind != GroupKind.INCOMPLETE
        return self.valid

    def tile_ids(self) -> List[int]:
        return [t.id for t in self.tiles]

    def index_of(self, tile_id: int) -> Optional[int]:
        for idx, tile in enumerate(self.tiles):
            if tile.id == tile_id:
                return idx
        return None

    def has_joker(self) -> bool:
        return any(t.is_joker for t in self.tiles)

    def clone(self) -> "Group":
        return Group([t.clone() for t in self.tiles], self.kind, self.valid)

    def to_dict(self) -> dict:
        return {"tiles": [t.to_dict() for t in self.tiles], "kind": self.kind.value, "valid": self.valid}

    @classmethod
    def from_dict(cls, data: dict) -> "Group":
        try:
            return cls([Tile.from_dict(t) for t in data["tiles"]], GroupKind(data["kind"]), bool(data["valid"]))
        except KeyError as exc:
            raise ValueError(f"malformed group record: missing {exc}") from exc
