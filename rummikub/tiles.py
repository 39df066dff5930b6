from __future__ import annotations

import itertools
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

JOKER_NUMBER = 0
JOKER_POINTS = 30


class Color(str, Enum):
    RED = "red"
    BLUE = "blue"
    BLACK = "black"
    YELLOW = "yellow"


COLOR_ORDER = {color: idx for idx, color in enumerate(Color)}
COLOR_LETTERS = {Color.RED: "R", Color.BLUE: "B", Color.BLACK: "K", Color.YELLOW: "Y"}


class TileKind(str, Enum):
    REGULAR = "REGULAR"
    JOKER = "JOKER"


class TileIdFactory:
    """Monotonic tile id source, injected wherever tiles are created."""

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._last = start - 1

    def __call__(self) -> int:
        self._last = next(self._counter)
        return self._last

    def advance_past(self, ids: Iterable[int]) -> None:
        highest = max(ids, default=self._last)
        if highest > self._last:
            self._counter = itertools.count(highest + 1)
            self._last = highest


@dataclass(frozen=True)
class Tile:
    number: int
    color: Color
    is_joker: bool
    id: int

    @property
    def kind(self) -> TileKind:
        return TileKind.JOKER if self.is_joker else TileKind.REGULAR

    def same_value(self, other: "Tile") -> bool:
        if self.is_joker or other.is_joker:
            return False
        return self.number == other.number and self.color == other.color

    def clone(self) -> "Tile":
        return Tile(self.number, self.color, self.is_joker, self.id)

    def points(self, joker_points: int = JOKER_POINTS) -> int:
        return joker_points if self.is_joker else self.number

    def to_dict(self) -> dict:
        return {"number": self.number, "color": self.color.value, "is_joker": self.is_joker, "id": self.id}

    @classmethod
    def from_dict(cls, data: dict) -> "Tile":
        try:
            return cls(int(data["number"]), Color(data["color"]), bool(data["is_joker"]), int(data["id"]))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed tile record: {data!r}") from exc

    @classmethod
    def regular(cls, number: int, color: Color, tile_id: int) -> "Tile":
        if number < 1:
            raise ValueError("regular tiles are numbered from 1")
        return cls(number, Color(color), False, tile_id)

    @classmethod
    def joker(cls, tile_id: int, color: Color = Color.RED) -> "Tile":
        return cls(JOKER_NUMBER, Color(color), True, tile_id)

    def __str__(self) -> str:
        if self.is_joker:
            return "JK"
        return f"{COLOR_LETTERS[self.color]}{self.number}"


def tile_points(tiles: Iterable[Tile], joker_points: int = JOKER_POINTS) -> int:
    return sum(tile.points(joker_points) for tile in tiles)


def hand_sort_key(tile: Tile):
    if tile.is_joker:
        return (1, 0, 0, tile.id)
    return (0, COLOR_ORDER[tile.color], tile.number, tile.id)


def number_sort_key(tile: Tile):
    if tile.is_joker:
        return (1, 0, 0, tile.id)
    return (0, tile.number, COLOR_ORDER[tile.color], tile.id)


def sort_tiles(tiles: List[Tile], key=hand_sort_key) -> None:
    tiles.sort(key=key)


def iter_full_pack(
    colors: Sequence[Color], values: int, copies: int, num_jokers: int, next_id: TileIdFactory
) -> Iterable[Tile]:
    for _ in range(copies):
        for number in range(1, values + 1):
            for color in colors:
                yield Tile.regular(number, color, next_id())
    for idx in range(num_jokers):
        yield Tile.joker(next_id(), color=colors[idx % len(colors)])


class Pack:
    """Shuffled bag of tiles; draws come off the end."""

    def __init__(self, tiles: Optional[List[Tile]] = None) -> None:
        self.tiles: List[Tile] = list(tiles) if tiles is not None else []

    @classmethod
    def full(cls, ruleset, rng: random.Random, next_id: TileIdFactory) -> "Pack":
        tiles = list(
            iter_full_pack(
                ruleset.colors, ruleset.values, ruleset.copies_per_tiletype, ruleset.num_jokers, next_id
            )
        )
        rng.shuffle(tiles)
        return cls(tiles)

    def draw(self) -> Optional[Tile]:
        if not self.tiles:
            return None
        return self.tiles.pop()

    def count(self) -> int:
        return len(self.tiles)

    def is_empty(self) -> bool:
        return not self.tiles

    def __len__(self) -> int:
        return len(self.tiles)

    def to_list(self) -> List[dict]:
        return [tile.to_dict() for tile in self.tiles]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> "Pack":
        return cls([Tile.from_dict(item) for item in data])
