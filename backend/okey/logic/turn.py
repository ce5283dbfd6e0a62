"""
Turn state machine for Okey: drawing, discarding and rack arrangement.

Every operation validates its preconditions before touching anything and
returns (new_state, events). A rejected action raises a GameRuleError and
leaves the caller's state as it was.

Per player the turn alternates between AWAITING_DRAW (draw_right set) and
AWAITING_DISCARD. The first seat starts in AWAITING_DISCARD holding an extra
tile. Discarding passes the turn to the next seat.
"""

from collections import Counter

import structlog

from okey.logic.deck import draw_from_stock
from okey.logic.enums import DrawSource, MatchPhase
from okey.logic.events import (
    DiscardEvent,
    DrawEvent,
    GameEvent,
    HandArrangedEvent,
    PlayerDrewEvent,
    TurnEvent,
    seat_target,
)
from okey.logic.exceptions import (
    DiscardUnavailableError,
    InvalidArrangementError,
    MatchNotInProgressError,
    MustDrawFirstError,
    NoDrawRightError,
    NotYourTurnError,
    StockEmptyError,
)
from okey.logic.state import MatchState
from okey.logic.state_utils import (
    advance_turn,
    can_discard,
    place_tile_in_hand,
    remove_tile_from_hand,
    trim_hand,
    update_player,
)
from okey.logic.tiles import tile_label

logger = structlog.get_logger()


def ensure_playing(state: MatchState) -> None:
    if state.phase != MatchPhase.PLAYING:
        raise MatchNotInProgressError(f"match is {state.phase.value}")


def ensure_current_seat(state: MatchState, seat: int) -> None:
    if seat != state.current_seat:
        raise NotYourTurnError(f"seat {seat} acted during seat {state.current_seat}'s turn")


def ensure_can_discard(state: MatchState, seat: int) -> None:
    """Raise unless seat is the current player in the discard phase."""
    ensure_playing(state)
    ensure_current_seat(state, seat)
    if not can_discard(state, seat):
        raise MustDrawFirstError("draw a tile before discarding")


def _take_left_discard(state: MatchState, seat: int) -> tuple[MatchState, int]:
    tile_id = state.claimable_discard
    left = state.left_seat(seat)
    pile = state.players[left].discards
    if tile_id is None or not pile or pile[-1] != tile_id:
        raise DiscardUnavailableError("no discard to take from the left neighbour")
    return update_player(state, left, discards=pile[:-1]), tile_id


def draw_tile(state: MatchState, seat: int, source: DrawSource = DrawSource.STOCK) -> tuple[MatchState, list[GameEvent]]:
    """
    Draw one tile from the stock or the left neighbour's last discard.

    Only the current player with draw right may draw. The drawn tile goes into
    the first empty rack slot. An empty stock raises StockEmptyError without
    changing any hand.
    """
    ensure_playing(state)
    ensure_current_seat(state, seat)
    if not state.draw_right:
        raise NoDrawRightError("already drew this turn")

    if source == DrawSource.STOCK:
        new_stock, tile_id = draw_from_stock(state.stock)
        if tile_id is None:
            raise StockEmptyError("the stock is exhausted")
        new_state = state.model_copy(update={"stock": new_stock})
    else:
        new_state, tile_id = _take_left_discard(state, seat)

    player = new_state.players[seat]
    hand = place_tile_in_hand(player.hand, tile_id, state.settings.max_hand_slots)
    new_state = update_player(new_state, seat, hand=hand)
    new_state = new_state.model_copy(update={"draw_right": False, "has_drawn": True, "claimable_discard": None})

    logger.debug("tile drawn", seat=seat, source=source, tile=tile_label(tile_id), stock=len(new_state.stock))
    events: list[GameEvent] = [
        DrawEvent(target=seat_target(seat), seat=seat, tile_id=tile_id, source=source, hand=list(hand)),
        PlayerDrewEvent(
            seat=seat,
            source=source,
            tile_id=tile_id if source == DrawSource.LEFT_DISCARD else None,
            stock_count=len(new_state.stock),
        ),
    ]
    return new_state, events


def discard_tile(state: MatchState, seat: int, tile_id: int) -> tuple[MatchState, list[GameEvent]]:
    """
    Discard a tile and pass the turn.

    The tile leaves an empty slot in the rack, lands on the seat's discard pile
    and becomes takeable by the next seat.
    """
    ensure_can_discard(state, seat)
    player = state.players[seat]
    hand = remove_tile_from_hand(player.hand, tile_id)

    new_state = update_player(state, seat, hand=hand, discards=(*player.discards, tile_id))
    new_state = advance_turn(new_state).model_copy(update={"claimable_discard": tile_id})

    logger.debug(
        "tile discarded",
        seat=seat,
        tile=tile_label(tile_id),
        next_seat=new_state.current_seat,
        turn_count=new_state.turn_count,
    )
    events: list[GameEvent] = [
        DiscardEvent(seat=seat, tile_id=tile_id),
        TurnEvent(
            current_seat=new_state.current_seat,
            turn_count=new_state.turn_count,
            stock_count=len(new_state.stock),
        ),
    ]
    return new_state, events


def arrange_hand(state: MatchState, seat: int, slots: list[int | None]) -> tuple[MatchState, list[GameEvent]]:
    """
    Replace a player's rack order.

    The new rack must hold exactly the same tiles. Any seat may rearrange at
    any point of the match.
    """
    ensure_playing(state)
    if len(slots) > state.settings.max_hand_slots:
        raise InvalidArrangementError(f"rack has at most {state.settings.max_hand_slots} slots")
    player = state.players[seat]
    proposed = Counter(t for t in slots if t is not None)
    if proposed != Counter(player.tiles):
        raise InvalidArrangementError("arrangement must hold exactly the tiles in hand")

    hand = trim_hand(tuple(slots))
    new_state = update_player(state, seat, hand=hand)
    return new_state, [HandArrangedEvent(target=seat_target(seat), hand=list(hand))]
