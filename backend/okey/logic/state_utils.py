"""
Immutable state update utilities using Pydantic model_copy.

These helpers never mutate their input; they return new hands or states
with the requested change applied.
"""

from collections.abc import Iterable

from okey.logic.exceptions import InvalidActionError, TileNotInHandError
from okey.logic.state import MatchState, OkeyPlayer

_PLAYER_FIELDS = set(OkeyPlayer.model_fields)

Hand = tuple[int | None, ...]


def update_player(state: MatchState, seat: int, **updates: object) -> MatchState:
    """
    Return new state with the player at seat updated.

    Raises:
        ValueError: If seat is out of bounds or update fields are invalid

    """
    if not (0 <= seat < len(state.players)):
        raise ValueError(f"Invalid seat {seat}, expected 0-{len(state.players) - 1}")
    invalid_fields = set(updates) - _PLAYER_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid player fields: {invalid_fields}")
    players = list(state.players)
    players[seat] = state.players[seat].model_copy(update=updates)
    return state.model_copy(update={"players": tuple(players)})


def trim_hand(hand: Hand) -> Hand:
    """Drop trailing empty slots."""
    end = len(hand)
    while end > 0 and hand[end - 1] is None:
        end -= 1
    return hand[:end]


def place_tile_in_hand(hand: Hand, tile_id: int, max_slots: int) -> Hand:
    """
    Put a tile into the first empty slot, or append it.
    """
    for index, slot in enumerate(hand):
        if slot is None:
            return (*hand[:index], tile_id, *hand[index + 1 :])
    if len(hand) >= max_slots:
        raise InvalidActionError(f"hand already uses all {max_slots} slots")
    return (*hand, tile_id)


def remove_tile_from_hand(hand: Hand, tile_id: int) -> Hand:
    """
    Empty the slot holding tile_id.

    Raises:
        TileNotInHandError: If the tile is not in the hand

    """
    if tile_id not in hand:
        raise TileNotInHandError(f"tile {tile_id} is not in hand")
    index = hand.index(tile_id)
    return trim_hand((*hand[:index], None, *hand[index + 1 :]))


def clear_hand_slots(hand: Hand, slots: Iterable[int]) -> Hand:
    """Empty the given slots."""
    cleared = set(slots)
    return trim_hand(tuple(None if i in cleared else t for i, t in enumerate(hand)))


def can_discard(state: MatchState, seat: int) -> bool:
    """
    A player may discard after drawing, and the first seat may discard on
    the opening turn without drawing.
    """
    if seat != state.current_seat:
        return False
    if state.has_drawn:
        return True
    return state.turn_count == 0 and seat == state.first_seat


def advance_turn(state: MatchState) -> MatchState:
    """
    Pass the turn to the next seat with a fresh draw right.
    """
    return state.model_copy(
        update={
            "current_seat": (state.current_seat + 1) % state.num_players,
            "draw_right": True,
            "has_drawn": False,
            "turn_count": state.turn_count + 1,
        }
    )
