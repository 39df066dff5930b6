import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rummikub.meld import Group, GroupKind, classify_tiles, is_valid_run, is_valid_set
from rummikub.table import Table
from rummikub.tiles import Color, Tile, TileIdFactory

R, B, K, Y = Color.RED, Color.BLUE, Color.BLACK, Color.YELLOW


def _tiles(*specs):
    next_id = TileIdFactory()
    out = []
    for spec in specs:
        if spec == "J":
            out.append(Tile.joker(next_id()))
        else:
            number, color = spec
            out.append(Tile.regular(number, color, next_id()))
    return out


def test_set_with_distinct_colours_is_valid():
    assert is_valid_set(_tiles((7, R), (7, B), (7, K)))
    assert is_valid_set(_tiles((7, R), (7, B), (7, K), (7, Y)))


def test_set_with_duplicate_colour_is_invalid():
    assert not is_valid_set(_tiles((7, R), (7, B), (7, K), (7, R)))
    assert not is_valid_set(_tiles((7, R), (7, R), (7, B)))


def test_set_rules_on_size_number_and_jokers():
    assert not is_valid_set(_tiles((7, R), (7, B)))
    assert not is_valid_set(_tiles((7, R), (8, B), (7, K)))
    assert is_valid_set(_tiles((7, R), (7, B), "J"))
    assert not is_valid_set(_tiles("J", "J", "J"))
    assert not is_valid_set(_tiles((7, R), (7, B), (7, K), (7, Y), "J"))


def test_run_joker_fills_internal_gap():
    assert is_valid_run(_tiles((3, R), (4, R), (6, R), "J"))
    assert not is_valid_run(_tiles((3, R), (4, R), (6, R)))


def test_run_rejects_mixed_colours_and_repeats():
    assert not is_valid_run(_tiles((3, R), (4, B), (5, R)))
    assert not is_valid_run(_tiles((3, R), (4, R), (4, R), (5, R)))
    assert not is_valid_run(_tiles((3, R), (3, R), "J"))


def test_run_leftover_jokers_extend_within_range():
    assert is_valid_run(_tiles((12, R), (13, R), "J"))
    assert is_valid_run(_tiles((1, B), (2, B), "J", "J"))
    assert not is_valid_run(_tiles((2, B), (6, B), "J"))


def test_run_cannot_outgrow_number_range():
    tiles = _tiles(*[(n, Y) for n in range(1, 14)])
    assert is_valid_run(tiles)
    assert not is_valid_run(tiles + _tiles("J"))


@pytest.mark.parametrize(
    "specs, kind",
    [
        ([(5, R), (5, B), (5, Y)], GroupKind.SET),
        ([(5, R), (6, R), (7, R)], GroupKind.RUN),
        ([(5, R), (6, R)], GroupKind.INCOMPLETE),
        ([(5, R), (6, B), (9, K)], GroupKind.INCOMPLETE),
    ],
)
def test_classify_tiles(specs, kind):
    assert classify_tiles(_tiles(*specs)) == kind


def test_validate_table_is_idempotent():
    table = Table(
        [
            Group(_tiles((5, R), (6, R), (7, R))),
            Group(_tiles((9, R), (9, B))),
            Group(_tiles((1, K), "J", (3, K))),
            Group(_tiles((2, R), (2, R), (2, B))),
        ]
    )
    table.validate()
    first = [(g.kind, g.valid) for g in table.groups]
    table.validate()
    assert [(g.kind, g.valid) for g in table.groups] == first
    assert first == [
        (GroupKind.RUN, True),
        (GroupKind.INCOMPLETE, False),
        (GroupKind.RUN, True),
        (GroupKind.INCOMPLETE, False),
    ]


def test_table_score_counts_valid_groups_only():
    table = Table(
        [
            Group(_tiles((10, R), (10, B), "J")),
            Group(_tiles((1, K), (2, K), (3, K))),
            Group(_tiles((13, Y), (12, B))),
        ]
    )
    table.validate()
    assert table.score() == 10 + 10 + 30 + 6
    assert table.score(exclude_jokers=True) == 26


def test_remove_tile_drops_empty_group():
    tiles = _tiles((4, R))
    table = Table([Group(list(tiles))])
    assert table.remove_tile(tiles[0].id) == tiles[0]
    assert table.groups == []
    assert table.remove_tile(tiles[0].id) is None
