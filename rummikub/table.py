from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
from typing import Iterable, List, Optional, Sequence, Tuple

from .meld import Group
from .tiles import JOKER_POINTS, Tile


@dataclass
class Table:
    groups: List[Group] = field(default_factory=list)

    def validate(self, values: int = 13, max_set_size: int = 4) -> None:
        """Re-classify every group. Safe to call repeatedly."""
        for group in self.groups:
            group.validate(values, max_set_size)

    def score(
        self,
        exclude_jokers: bool = False,
        joker_points: int = JOKER_POINTS,
        groups: Optional[Sequence[Group]] = None,
    ) -> int:
        total = 0
        for group in self.groups if groups is None else groups:
            if not group.valid:
                continue
            for tile in group.tiles:
                if tile.is_joker:
                    if not exclude_jokers:
                        total += joker_points
                else:
                    total += tile.number
        return total

    def all_tiles(self) -> Iterable[Tile]:
        for group in self.groups:
            for tile in group.tiles:
                yield tile

    def tile_ids(self) -> set:
        return {tile.id for tile in self.all_tiles()}

    def is_empty(self) -> bool:
        return not any(group.tiles for group in self.groups)

    def find_tile(self, tile_id: int) -> Optional[Tuple[int, int]]:
        for group_idx, group in enumerate(self.groups):
            tile_idx = group.index_of(tile_id)
            if tile_idx is not None:
                return group_idx, tile_idx
        return None

    def add_tile(self, tile: Tile, group_index: Optional[int] = None) -> int:
        """Append to an existing group, or open a new one; returns the group index."""
        if group_index is None:
            self.groups.append(Group([tile]))
            return len(self.groups) - 1
        self.groups[group_index].tiles.append(tile)
        return group_index

    def remove_tile(self, tile_id: int) -> Optional[Tile]:
        """Take a tile off the table, dropping its group if that leaves it empty."""
        location = self.find_tile(tile_id)
        if location is None:
            return None
        group_idx, tile_idx = location
        group = self.groups[group_idx]
        tile = group.tiles.pop(tile_idx)
        if not group.tiles:
            del self.groups[group_idx]
        return tile

    def layout(self) -> List[List[int]]:
        return [group.tile_ids() for group in self.groups]

    def clone(self) -> "Table":
        return Table([group.clone() for group in self.groups])

    def canonical_key(self) -> Tuple:
        return tuple(
            (group.kind.value, group.valid, tuple((t.id, t.number, t.color.value, t.is_joker) for t in group.tiles))
            for group in self.groups
        )

    def stable_hash(self) -> str:
        key = self.canonical_key()
        return hashlib.sha256(repr(key).encode("utf-8")).hexdigest()

    def to_list(self) -> List[dict]:
        return [group.to_dict() for group in self.groups]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> "Table":
        return cls([Group.from_dict(item) for item in data])

    def __len__(self) -> int:
        return len(self.groups)
