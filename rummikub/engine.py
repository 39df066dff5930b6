from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from .move import MoveKind, PlayCheck, PlayResult
from .state import GameEvent, GameState, TurnState
from .tiles import Tile, sort_tiles

logger = logging.getLogger(__name__)


def _hand_index(hand: List[Tile], tile_id: int) -> Optional[int]:
    for idx, tile in enumerate(hand):
        if tile.id == tile_id:
            return idx
    return None


def record_event(state: GameState, kind: MoveKind, payload: dict) -> None:
    state.event_log.append(GameEvent(player=state.current_player, move_kind=kind.value, payload=payload))


def tiles_placed_this_turn(state: GameState) -> List[Tile]:
    placed = state.turn.tiles_placed_this_turn
    return [tile for tile in state.table.all_tiles() if tile.id in placed]


def place_tile_on_table(state: GameState, tile: Tile, group_index: Optional[int] = None) -> bool:
    """Move a tile from the acting hand onto the table.

    With ``group_index`` the tile joins that group, otherwise it opens a new
    singleton group. Returns False (and changes nothing) when the game is over,
    the tile is not in the acting hand or the group does not exist.
    """
    if state.winner is not None:
        return False
    if group_index is not None and not 0 <= group_index < len(state.table.groups):
        logger.debug("seat %d: no group at index %d", state.current_player, group_index)
        return False
    hand = state.current_hand
    idx = _hand_index(hand, tile.id)
    if idx is None:
        logger.debug("seat %d: tile %s is not in hand", state.current_player, tile)
        return False

    placed = hand.pop(idx)
    target = state.table.add_tile(placed, group_index)
    state.validate_table()
    state.turn.tiles_placed_this_turn.add(placed.id)
    if not state.turn.has_drawn:
        state.turn.tiles_before_draw = state.table.layout()
    logger.debug("seat %d placed %s into group %d", state.current_player, placed, target)
    return True


def draw_tile(state: GameState) -> Optional[Tile]:
    if state.winner is not None or state.turn.has_drawn:
        return None
    tile = state.pack.draw()
    if tile is None:
        return None
    hand = state.current_hand
    hand.append(tile)
    sort_tiles(hand)
    # the draw cannot be undone, so the turn-start snapshot keeps the drawn tile
    state.turn.original_hand.append(tile.clone())
    state.turn.has_drawn = True
    state.turn.has_played = False
    record_event(state, MoveKind.DRAW, {"tile": tile.id})
    logger.debug("seat %d drew %s (%d left in pack)", state.current_player, tile, state.pack.count())
    return tile


def check_play(state: GameState) -> PlayCheck:
    """Decide whether the current table may be committed by the acting seat.

    On failure ``tiles_to_return`` lists the tiles the caller should send back
    to hand: every tile placed this turn when the first-play rule fails,
    otherwise only this turn's tiles sitting in invalid groups.
    """
    groups = [group for group in state.table.groups if group.tiles]
    if not groups:
        return PlayCheck(False, [], "table is empty")

    placed = state.turn.tiles_placed_this_turn
    invalid = [group for group in groups if not group.valid]

    if state.is_first_play():
        own = [g for g in groups if g.valid and any(t.id in placed for t in g.tiles)]
        score = state.table.score(exclude_jokers=True, groups=own)
        minimum = state.ruleset.initial_meld_min_points
        if score < minimum:
            return PlayCheck(
                False,
                tiles_placed_this_turn(state),
                f"first play must score at least {minimum} without jokers (scored {score})",
            )
        if any(group.has_joker() for group in own):
            return PlayCheck(False, tiles_placed_this_turn(state), "jokers are not allowed in a first play")

    if invalid:
        to_return = [tile for group in invalid for tile in group.tiles if tile.id in placed]
        return PlayCheck(False, to_return, "table has invalid groups")

    return PlayCheck(True)


def can_play(state: GameState) -> bool:
    return check_play(state).can_play


def play(state: GameState) -> PlayResult:
    check = check_play(state)
    if not check:
        returned = return_tiles_to_hand(state, check.tiles_to_return)
        logger.debug("seat %d play rejected: %s", state.current_player, check.reason)
        return PlayResult(False, check.reason, returned)

    turn = state.turn
    if turn.has_drawn and turn.before_draw_ids() & turn.tiles_placed_this_turn:
        reason = "tiles placed before drawing cannot be played after the draw"
        logger.debug("seat %d play rejected: %s", state.current_player, reason)
        return PlayResult(False, reason)

    seat = state.current_player
    table_ids = state.table.tile_ids()
    state.hands[seat] = [tile for tile in state.current_hand if tile.id not in table_ids]

    played = sorted(turn.tiles_placed_this_turn)
    if state.is_first_play(seat):
        state.first_play_done[seat] = True
    score = state.calculate_table_score()
    state.scores[seat] = score
    record_event(state, MoveKind.PLAY, {"tiles": played, "table": state.table.layout()})

    state.snapshot_turn_start()
    turn.clear_tracking()
    turn.has_played = True
    logger.info("seat %d played %d tiles, table score %d", seat, len(played), score)

    if not state.hands[seat]:
        state.winner = seat
        logger.info("seat %d emptied their hand and wins", seat)
    return PlayResult(True, score=score)


def return_tiles_to_hand(state: GameState, tiles: Iterable[Tile]) -> List[Tile]:
    """Send tiles from the table back to the acting hand.

    Tiles that are not on the table are ignored. Returns the tiles moved.
    """
    returned: List[Tile] = []
    turn = state.turn
    for tile in tiles:
        removed = state.table.remove_tile(tile.id)
        if removed is None:
            continue
        returned.append(removed)
        turn.tiles_placed_this_turn.discard(removed.id)
    if returned:
        ids = {tile.id for tile in returned}
        turn.tiles_before_draw = [
            [tile_id for tile_id in group if tile_id not in ids] for group in turn.tiles_before_draw
        ]
        state.current_hand.extend(returned)
        sort_tiles(state.current_hand)
    state.validate_table()
    return returned


def can_undo(state: GameState) -> bool:
    turn = state.turn
    return not turn.has_drawn and not turn.has_played and bool(turn.tiles_placed_this_turn)


def undo_placements(state: GameState) -> List[Tile]:
    if not can_undo(state):
        return []
    return return_tiles_to_hand(state, tiles_placed_this_turn(state))


def reset_turn(state: GameState) -> None:
    """Roll hand and table back to the turn-start snapshot."""
    turn = state.turn
    state.hands[state.current_player] = [tile.clone() for tile in turn.original_hand]
    sort_tiles(state.current_hand)
    state.table = turn.original_table.clone()
    state.validate_table()
    turn.clear_tracking()
    turn.has_played = False


def next_player(state: GameState) -> int:
    state.current_player = (state.current_player + 1) % state.ruleset.num_players
    state.turn_number += 1
    return state.current_player


def begin_turn(state: GameState) -> None:
    state.turn = TurnState()
    state.snapshot_turn_start()


def end_turn(state: GameState) -> List[Tile]:
    """Close the acting seat's turn and hand over to the next seat.

    Tiles placed this turn but never committed go back to the acting hand
    first. Returns those tiles.
    """
    returned = return_tiles_to_hand(state, tiles_placed_this_turn(state))
    if returned:
        logger.debug("seat %d: %d uncommitted tiles returned", state.current_player, len(returned))
    if state.winner is None:
        next_player(state)
        begin_turn(state)
    return returned


def pass_turn(state: GameState) -> Tuple[bool, str]:
    if state.winner is not None:
        return False, "game already finished"
    turn = state.turn
    if not turn.has_drawn:
        if turn.tiles_placed_this_turn:
            result = play(state)
            if not result:
                return False, result.reason
        elif not can_play(state):
            return False, "nothing playable on the table; draw a tile instead"
        record_event(state, MoveKind.PASS, {})
    end_turn(state)
    return True, ""
