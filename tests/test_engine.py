import json
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rummikub.engine import (
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
from rummikub.meld import Group
from rummikub.rules import Ruleset
from rummikub.state import GameState, new_game
from rummikub.tiles import Color, Tile, sort_tiles

R, B, K, Y = Color.RED, Color.BLUE, Color.BLACK, Color.YELLOW


def _state_with_hand(specs, seed=1, opening_done=False):
    state = new_game(ruleset=Ruleset(initial_hand_size=0), rng_seed=seed)
    hand = []
    for spec in specs:
        if spec == "J":
            hand.append(Tile.joker(state.next_tile_id()))
        else:
            number, color = spec
            hand.append(Tile.regular(number, color, state.next_tile_id()))
    sort_tiles(hand)
    state.hands[0] = hand
    state.first_play_done[0] = opening_done
    state.snapshot_turn_start()
    return state


def _place_group(state, tiles):
    assert place_tile_on_table(state, tiles[0])
    index = len(state.table.groups) - 1
    for tile in tiles[1:]:
        assert place_tile_on_table(state, tile, index)
    return index


def _hand_ids(state, seat=0):
    return [t.id for t in state.hands[seat]]


def test_first_play_below_thirty_is_returned_to_hand():
    state = _state_with_hand([(8, R), (9, R), (10, R)])
    before = _hand_ids(state)
    _place_group(state, list(state.hands[0]))

    assert state.calculate_table_score(exclude_jokers=True) == 27
    assert not can_play(state)
    result = play(state)

    assert not result
    assert sorted(t.id for t in result.returned_tiles) == sorted(before)
    assert _hand_ids(state) == before
    assert state.table.groups == []
    assert state.first_play_done[0] is False


def test_first_play_set_of_forty_is_accepted():
    state = _state_with_hand([(10, R), (10, B), (10, K), (10, Y), (2, B)])
    tens = [t for t in state.hands[0] if t.number == 10]
    _place_group(state, tens)

    assert can_play(state)
    result = play(state)

    assert result.ok
    assert result.score == 40
    assert state.first_play_done[0] is True
    assert state.scores[0] == 40
    assert [str(t) for t in state.hands[0]] == ["B2"]
    assert state.turn.has_played
    assert state.turn.tiles_placed_this_turn == set()


def test_first_play_with_joker_returns_every_placed_tile():
    state = _state_with_hand([(10, R), (10, B), (10, K), "J", (1, Y), (2, Y)])
    set_tiles = [t for t in state.hands[0] if t.number == 10 or t.is_joker]
    _place_group(state, set_tiles)
    stray = [t for t in state.hands[0] if t.color == Y and t.number == 1][0]
    place_tile_on_table(state, stray)

    check = check_play(state)
    assert not check.can_play
    assert "joker" in check.reason
    assert len(check.tiles_to_return) == 5

    play(state)
    assert state.table.groups == []
    assert len(state.hands[0]) == 6


def _lay_down_for_another_seat(state, specs):
    tiles = []
    for spec in specs:
        if spec == "J":
            tiles.append(Tile.joker(state.next_tile_id()))
        else:
            number, color = spec
            tiles.append(Tile.regular(number, color, state.next_tile_id()))
    state.table.groups.append(Group(tiles))
    state.validate_table()
    state.snapshot_turn_start()


def test_joker_in_another_seats_group_does_not_block_an_opening():
    state = _state_with_hand([(9, Y), (10, Y), (11, Y), (3, R)])
    _lay_down_for_another_seat(state, [(12, R), (12, B), "J"])
    _place_group(state, [t for t in state.hands[0] if t.color == Y])

    check = check_play(state)
    assert check.can_play

    result = play(state)
    assert result.ok
    assert state.first_play_done[0] is True
    assert len(state.table.groups) == 2


def test_another_seats_points_do_not_count_towards_an_opening():
    state = _state_with_hand([(5, K), (6, K), (7, K), (3, R)])
    _lay_down_for_another_seat(state, [(10, R), (10, B), (10, K), (10, Y)])
    assert state.calculate_table_score(exclude_jokers=True) == 40
    run = [t for t in state.hands[0] if t.color == K]
    _place_group(state, run)

    check = check_play(state)
    assert not check.can_play
    assert "scored 18" in check.reason
    assert sorted(t.id for t in check.tiles_to_return) == sorted(t.id for t in run)

    play(state)
    assert len(state.hands[0]) == 4
    assert [str(t) for t in state.table.groups[0].tiles] == ["R10", "B10", "K10", "Y10"]
    assert len(state.table.groups) == 1


def test_invalid_group_only_returns_its_own_tiles_after_opening():
    state = _state_with_hand([(1, R), (2, R), (3, R), (5, B)], opening_done=True)
    run = [t for t in state.hands[0] if t.color == R]
    lone = [t for t in state.hands[0] if t.color == B][0]
    _place_group(state, run)
    place_tile_on_table(state, lone)

    result = play(state)

    assert not result
    assert result.returned_tiles == [lone]
    assert len(state.table.groups) == 1
    assert state.table.groups[0].valid
    assert play(state).ok


def test_empty_table_cannot_be_played():
    state = _state_with_hand([(1, R)])
    check = check_play(state)
    assert not check.can_play
    assert check.tiles_to_return == []


def test_place_rejects_unknown_group_and_foreign_tile():
    state = _state_with_hand([(4, R), (5, R)])
    tile = state.hands[0][0]
    assert not place_tile_on_table(state, tile, group_index=3)
    assert not place_tile_on_table(state, Tile.regular(9, Y, 999))
    assert state.table.groups == []
    assert len(state.hands[0]) == 2


def test_draw_only_once_per_turn_and_not_from_empty_pack():
    state = _state_with_hand([(4, R)])
    first = draw_tile(state)
    assert first is not None
    assert first.id in _hand_ids(state)
    assert state.turn.has_drawn
    assert draw_tile(state) is None

    state = _state_with_hand([(4, R)])
    state.pack.tiles.clear()
    assert draw_tile(state) is None
    assert not state.turn.has_drawn


def test_play_after_draw_rejects_tiles_placed_before_the_draw():
    state = _state_with_hand([(1, R), (2, R), (3, R)], opening_done=True)
    _place_group(state, list(state.hands[0]))
    layout = state.table.layout()

    assert draw_tile(state) is not None
    result = play(state)

    assert not result
    assert "before drawing" in result.reason
    assert state.table.layout() == layout
    assert state.first_play_done[0] is True
    assert state.scores[0] == 0


def test_tiles_placed_after_the_draw_can_be_played():
    state = _state_with_hand([(4, R), (5, R), (6, R)], opening_done=True)
    run = list(state.hands[0])
    assert draw_tile(state) is not None
    _place_group(state, run)

    assert play(state).ok
    assert state.scores[0] == 15


def test_return_tiles_ignores_tiles_not_on_table():
    state = _state_with_hand([(1, R), (2, R), (9, Y)], opening_done=True)
    placed, kept = state.hands[0][0], state.hands[0][2]
    place_tile_on_table(state, placed)

    returned = return_tiles_to_hand(state, [placed, kept])
    assert returned == [placed]
    assert _hand_ids(state).count(kept.id) == 1
    assert return_tiles_to_hand(state, [placed]) == []
    assert len(state.hands[0]) == 3


def test_undo_is_only_allowed_before_drawing():
    state = _state_with_hand([(1, R), (2, R)], opening_done=True)
    assert not can_undo(state)
    place_tile_on_table(state, state.hands[0][0])
    assert can_undo(state)
    assert len(undo_placements(state)) == 1
    assert state.table.groups == []

    place_tile_on_table(state, state.hands[0][0])
    draw_tile(state)
    assert not can_undo(state)
    assert undo_placements(state) == []
    assert len(state.table.groups) == 1


def test_reset_turn_restores_snapshot():
    state = _state_with_hand([(7, R), (7, B), (7, K), (1, Y)])
    before = _hand_ids(state)
    _place_group(state, state.hands[0][:3])

    reset_turn(state)

    assert _hand_ids(state) == before
    assert state.table.groups == []
    assert state.turn.tiles_placed_this_turn == set()


def test_reset_turn_keeps_the_drawn_tile():
    state = _state_with_hand([(7, R)])
    drawn = draw_tile(state)
    place_tile_on_table(state, state.hands[0][0])

    reset_turn(state)

    assert drawn.id in _hand_ids(state)
    assert len(state.hands[0]) == 2
    assert state.turn.has_drawn


def test_next_player_cycles_over_seats():
    state = _state_with_hand([])
    assert [next_player(state) for _ in range(5)] == [1, 2, 3, 0, 1]
    assert state.turn_number == 5


def test_pass_requires_a_draw_when_nothing_is_playable():
    state = _state_with_hand([(5, Y)])
    ok, reason = pass_turn(state)
    assert not ok
    assert "draw" in reason

    draw_tile(state)
    ok, _ = pass_turn(state)
    assert ok
    assert state.current_player == 1
    assert state.turn.has_drawn is False
    assert state.event_log[-1].move_kind == "DRAW"


def test_end_turn_returns_uncommitted_tiles():
    state = _state_with_hand([(1, R), (2, R), (3, R)], opening_done=True)
    _place_group(state, list(state.hands[0]))
    draw_tile(state)
    assert not play(state)

    returned = end_turn(state)

    assert len(returned) == 3
    assert len(state.hands[0]) == 4
    assert state.table.groups == []
    assert state.current_player == 1


def test_emptying_the_hand_wins():
    state = _state_with_hand([(11, R), (11, B), (11, Y)])
    _place_group(state, list(state.hands[0]))

    assert play(state).ok
    assert state.winner == 0
    end_turn(state)
    assert state.current_player == 0
    assert draw_tile(state) is None


def test_no_tile_is_lost_across_a_turn():
    state = new_game(rng_seed=9)
    all_ids = sorted(state.owned_tile_ids())
    assert all_ids == list(range(106))

    hand = state.hands[0]
    _place_group(state, hand[:3])
    place_tile_on_table(state, state.hands[0][0])
    play(state)
    draw_tile(state)
    place_tile_on_table(state, state.hands[0][-1])
    play(state)
    end_turn(state)

    assert sorted(state.owned_tile_ids()) == all_ids


def test_snapshot_round_trip_preserves_tiles_and_turn():
    state = new_game(rng_seed=3)
    place_tile_on_table(state, state.hands[0][0])
    draw_tile(state)

    data = json.loads(json.dumps(state.to_dict()))
    restored = GameState.from_dict(data)

    assert restored.state_key() == state.state_key()
    assert restored.stable_hash() == state.stable_hash()
    assert [t.id for t in restored.pack.tiles] == [t.id for t in state.pack.tiles]
    assert restored.turn.to_dict() == state.turn.to_dict()
    assert restored.table.to_list() == state.table.to_list()
    assert restored.next_tile_id() == 106
