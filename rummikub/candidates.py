from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .meld import GroupKind
from .rules import Ruleset
from .table import Table
from .tiles import COLOR_ORDER, JOKER_POINTS, Color, Tile, hand_sort_key, number_sort_key, tile_points


@dataclass(frozen=True)
class Candidate:
    kind: GroupKind
    tiles: Tuple[Tile, ...]
    score: int
    add_to_group: bool = False
    group_index: Optional[int] = None

    @property
    def tile_count(self) -> int:
        return len(self.tiles)

    def tile_ids(self) -> List[int]:
        return [t.id for t in self.tiles]

    def has_joker(self) -> bool:
        return any(t.is_joker for t in self.tiles)

    def face_value(self) -> int:
        """Score with jokers counted as zero, as required for a first play."""
        return sum(t.number for t in self.tiles if not t.is_joker)


def _candidate(kind: GroupKind, tiles: Sequence[Tile], joker_points: int, **extra) -> Candidate:
    return Candidate(kind, tuple(tiles), tile_points(tiles, joker_points), **extra)


def _jokers(hand: Iterable[Tile]) -> List[Tile]:
    return [t for t in hand if t.is_joker]


def find_sets(hand: Sequence[Tile], max_set_size: int = 4, joker_points: int = JOKER_POINTS) -> List[Candidate]:
    jokers = _jokers(hand)
    by_number: Dict[int, List[Tile]] = {}
    for tile in hand:
        if not tile.is_joker:
            by_number.setdefault(tile.number, []).append(tile)

    sets: List[Candidate] = []
    for number in sorted(by_number):
        tiles = by_number[number]
        distinct_colors = {t.color for t in tiles}
        if len(distinct_colors) + len(jokers) < 3:
            continue
        selected: List[Tile] = []
        used = set()
        for tile in tiles:
            if tile.color in used:
                continue
            selected.append(tile)
            used.add(tile.color)
            if len(selected) >= max_set_size:
                break
        selected.extend(jokers[: max(0, 3 - len(selected))])
        if len(selected) >= 3:
            sets.append(_candidate(GroupKind.SET, selected, joker_points))
    return sets


def _distinct_by_number(tiles: Iterable[Tile]) -> List[Tile]:
    seen: Dict[int, Tile] = {}
    for tile in tiles:
        seen.setdefault(tile.number, tile)
    return [seen[number] for number in sorted(seen)]


def _greedy_runs(tiles: List[Tile], jokers: List[Tile]) -> Iterable[List[Tile]]:
    for start in range(len(tiles)):
        sequence = [tiles[start]]
        current = tiles[start].number
        available = list(jokers)
        for tile in tiles[start + 1 :]:
            gap = tile.number - current - 1
            if gap > len(available):
                break
            sequence.extend(available[:gap])
            available = available[gap:]
            sequence.append(tile)
            current = tile.number
        if len(sequence) >= 3:
            yield sequence


def _bridged_pairs(tiles: List[Tile], jokers: List[Tile], values: int) -> Iterable[List[Tile]]:
    """Two real tiles bridged by jokers, padded at an end when still short."""
    for low, high in zip(tiles, tiles[1:]):
        gap = high.number - low.number - 1
        if gap > len(jokers):
            continue
        sequence = [low] + jokers[:gap] + [high]
        spare = jokers[gap:]
        if len(sequence) < 3 and spare:
            if high.number < values:
                sequence.append(spare[0])
            elif low.number > 1:
                sequence.insert(0, spare[0])
        if len(sequence) >= 3:
            yield sequence


def find_runs(hand: Sequence[Tile], values: int = 13, joker_points: int = JOKER_POINTS) -> List[Candidate]:
    jokers = _jokers(hand)
    by_color: Dict[Color, List[Tile]] = {}
    for tile in hand:
        if not tile.is_joker:
            by_color.setdefault(tile.color, []).append(tile)

    runs: List[Candidate] = []
    seen = set()
    for color in sorted(by_color, key=lambda c: COLOR_ORDER[c]):
        tiles = _distinct_by_number(by_color[color])
        if len(tiles) < 2:
            continue
        sequences = list(_greedy_runs(tiles, jokers))
        if jokers:
            sequences.extend(_bridged_pairs(tiles, jokers, values))
        for sequence in sequences:
            key = tuple(t.id for t in sequence)
            if key in seen:
                continue
            seen.add(key)
            runs.append(_candidate(GroupKind.RUN, sequence, joker_points))
    return runs


def find_table_extensions(
    hand: Sequence[Tile], table: Table, values: int = 13, max_set_size: int = 4
) -> List[Candidate]:
    """Single hand tiles that extend a valid table group."""
    extensions: List[Candidate] = []
    for group_index, group in enumerate(table.groups):
        if not group.valid:
            continue
        regular = [t for t in group.tiles if not t.is_joker]
        if not regular:
            continue
        for tile in hand:
            if tile.is_joker:
                continue
            if group.kind == GroupKind.SET:
                if len(group.tiles) >= max_set_size:
                    continue
                if tile.number != regular[0].number or tile.color in {t.color for t in regular}:
                    continue
            elif group.kind == GroupKind.RUN:
                if len(group.tiles) >= values or tile.color != regular[0].color:
                    continue
                numbers = [t.number for t in regular]
                if tile.number not in (min(numbers) - 1, max(numbers) + 1):
                    continue
            else:
                continue
            extensions.append(
                Candidate(group.kind, (tile,), tile.number, add_to_group=True, group_index=group_index)
            )
    return extensions


def find_combinations(
    hand: Sequence[Tile],
    table: Optional[Table] = None,
    use_table: bool = False,
    ruleset: Optional[Ruleset] = None,
) -> List[Candidate]:
    """Greedy candidate plays for a hand.

    Candidates may overlap; callers pick one. Table extensions are included
    only with ``use_table``.
    """
    ruleset = ruleset or Ruleset()
    candidates = find_sets(hand, ruleset.max_set_size, ruleset.joker_points)
    candidates.extend(find_runs(hand, ruleset.values, ruleset.joker_points))
    if use_table and table is not None:
        candidates.extend(find_table_extensions(hand, table, ruleset.values, ruleset.max_set_size))
    return candidates


def shedding_order(candidates: Iterable[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=lambda c: (c.tile_count, c.score), reverse=True)


def opening_candidates(candidates: Iterable[Candidate], minimum: int) -> List[Candidate]:
    """Candidates a seat may open with: no jokers and enough face value."""
    return [c for c in candidates if not c.add_to_group and not c.has_joker() and c.face_value() >= minimum]


def rank_combinations(
    hand: Sequence[Tile],
    table: Optional[Table] = None,
    ruleset: Optional[Ruleset] = None,
    first_play: bool = False,
) -> List[Candidate]:
    """Every candidate the acting seat could lay down now, best first.

    Before a seat has opened only its hand is searched and the list keeps
    the candidates that satisfy the opening rule; afterwards table
    extensions are searched too.
    """
    ruleset = ruleset or Ruleset()
    if first_play:
        found = find_combinations(hand, ruleset=ruleset)
        return shedding_order(opening_candidates(found, ruleset.initial_meld_min_points))
    return shedding_order(find_combinations(hand, table, use_table=table is not None, ruleset=ruleset))


def suggest_combination(
    hand: Sequence[Tile],
    table: Optional[Table] = None,
    ruleset: Optional[Ruleset] = None,
    first_play: bool = False,
) -> Optional[Candidate]:
    ranked = rank_combinations(hand, table, ruleset, first_play)
    return ranked[0] if ranked else None


class HandOrder(str, Enum):
    COLOR = "color"
    NUMBER = "number"
    RUN = "run"
    SET = "set"


def _lead_with(hand: Sequence[Tile], lead: Candidate, key) -> List[Tile]:
    lead_ids = set(lead.tile_ids())
    rest = sorted((t for t in hand if t.id not in lead_ids), key=key)
    return list(lead.tiles) + rest


def arrange_hand(hand: Sequence[Tile], order: HandOrder | str, ruleset: Optional[Ruleset] = None) -> List[Tile]:
    """Return the hand reordered for display.

    ``RUN`` puts the longest run first and the rest by colour, ``SET`` the
    highest scoring set first and the rest by number. Without such a
    combination they fall back to plain colour or number order.
    """
    ruleset = ruleset or Ruleset()
    order = HandOrder(order)
    if order == HandOrder.RUN:
        runs = find_runs(hand, ruleset.values, ruleset.joker_points)
        if runs:
            longest = max(runs, key=lambda c: c.tile_count)
            return _lead_with(hand, longest, hand_sort_key)
        order = HandOrder.COLOR
    elif order == HandOrder.SET:
        sets = find_sets(hand, ruleset.max_set_size, ruleset.joker_points)
        if sets:
            best = max(sets, key=lambda c: c.score)
            return _lead_with(hand, best, number_sort_key)
        order = HandOrder.NUMBER
    key = hand_sort_key if order == HandOrder.COLOR else number_sort_key
    return sorted(hand, key=key)
