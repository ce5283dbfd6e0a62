"""
Match lifecycle for Okey: setup, finishing, ending and per-seat views.
"""

import structlog

from okey.logic.combinations import evaluate_hand
from okey.logic.dealer import deal_initial_hands
from okey.logic.deck import DeckSetup, build_deck
from okey.logic.enums import MatchEndReason, MatchPhase
from okey.logic.events import GameEvent, MatchEndedEvent
from okey.logic.exceptions import ConstructionInvariantError, InvalidFinishError
from okey.logic.ledger import committed_tile_count
from okey.logic.settings import GameSettings, validate_settings
from okey.logic.state import MatchResult, MatchState, OkeyPlayer
from okey.logic.state_utils import can_discard, remove_tile_from_hand, update_player
from okey.logic.tiles import NUM_TILES, hand_value, is_joker, tile_label
from okey.logic.turn import ensure_can_discard
from okey.logic.types import GameView, LedgerEntryView, PlayerView

logger = structlog.get_logger()

FIRST_SEAT = 0


def count_tiles(state: MatchState) -> int:
    """Tiles accounted for across stock, hands, discard piles and the table.

    A conserved match always counts NUM_TILES: two copies of 52 numbered faces
    plus two false jokers, 106 tiles.
    """
    in_hands = sum(player.tile_count for player in state.players)
    in_discards = sum(len(player.discards) for player in state.players)
    return len(state.stock) + in_hands + in_discards + committed_tile_count(state.ledger)


def check_tile_conservation(state: MatchState) -> None:
    """Raise ConstructionInvariantError unless every tile is accounted for."""
    total = count_tiles(state)
    if total != NUM_TILES:
        raise ConstructionInvariantError(
            f"match holds {total} tiles, expected {NUM_TILES}",
            expected=NUM_TILES,
            actual=total,
        )


def init_match(
    player_names: list[str],
    seed: str,
    settings: GameSettings | None = None,
    deck: DeckSetup | None = None,
) -> MatchState:
    """
    Build the deck, deal and return the opening state.

    Seat order follows player_names; seat 0 is the first player and starts
    holding the extra tile with no draw right. A prebuilt deck may be passed
    for tests and replays.
    """
    settings = settings or GameSettings()
    validate_settings(settings)
    if len(player_names) != settings.num_players:
        raise ValueError(f"expected {settings.num_players} players, got {len(player_names)}")

    deck = deck or build_deck(seed)
    stock, hands = deal_initial_hands(deck.stock, deck.okey, FIRST_SEAT, settings)
    players = tuple(OkeyPlayer(seat=seat, name=name, hand=hands[seat]) for seat, name in enumerate(player_names))

    state = MatchState(
        players=players,
        stock=stock,
        okey=deck.okey,
        indicator=deck.indicator,
        first_seat=FIRST_SEAT,
        current_seat=FIRST_SEAT,
        draw_right=False,
        settings=settings,
        seed=seed,
    )
    check_tile_conservation(state)
    logger.info("match initialized", indicator=tile_label(deck.indicator), okey=str(deck.okey), stock=len(stock))
    return state


def _finish_state(state: MatchState, result: MatchResult) -> tuple[MatchState, list[GameEvent]]:
    new_state = state.model_copy(update={"phase": MatchPhase.FINISHED, "result": result})
    return new_state, [MatchEndedEvent(result=result)]


def finish_hand(state: MatchState, seat: int, tile_id: int) -> tuple[MatchState, list[GameEvent]]:
    """
    End the match by laying down a final tile.

    The final tile goes to the finisher's discard pile. With
    require_complete_finish the rest of the rack must be fully covered by
    combinations. Losers are penalised by the value left in their racks,
    multiplied when the final tile is a joker.
    """
    ensure_can_discard(state, seat)
    player = state.players[seat]
    remaining = remove_tile_from_hand(player.hand, tile_id)
    evaluation = evaluate_hand(remaining, state.okey)
    occupied = {i for i, t in enumerate(remaining) if t is not None}
    if state.settings.require_complete_finish and not occupied <= evaluation.covered_slots:
        raise InvalidFinishError(f"{len(occupied - evaluation.covered_slots)} tiles are not in a combination")

    joker_finish = is_joker(tile_id)
    multiplier = state.settings.joker_finish_multiplier if joker_finish else 1
    penalties = tuple(
        0 if other.seat == seat else hand_value(other.tiles, state.okey) * multiplier for other in state.players
    )
    result = MatchResult(
        reason=MatchEndReason.FINISHED,
        winner_seat=seat,
        final_tile=tile_id,
        is_joker_finish=joker_finish,
        winning_combinations=evaluation.combinations,
        penalties=penalties,
    )

    new_state = update_player(state, seat, hand=remaining, discards=(*player.discards, tile_id))
    logger.info("hand finished", seat=seat, final_tile=tile_label(tile_id), joker_finish=joker_finish)
    return _finish_state(new_state, result)


def end_on_stock_exhausted(state: MatchState) -> tuple[MatchState, list[GameEvent]]:
    """Close the match with no winner; every seat is penalised by its rack."""
    penalties = tuple(hand_value(player.tiles, state.okey) for player in state.players)
    logger.info("match ended on exhausted stock", turn_count=state.turn_count)
    return _finish_state(state, MatchResult(reason=MatchEndReason.STOCK_EXHAUSTED, penalties=penalties))


def abort_match(state: MatchState) -> tuple[MatchState, list[GameEvent]]:
    """Stop the match without scoring, e.g. after a disconnect."""
    logger.info("match aborted", turn_count=state.turn_count)
    return _finish_state(state, MatchResult(reason=MatchEndReason.ABORTED))


def get_player_view(state: MatchState, seat: int) -> GameView:
    """
    Match state as seen from seat: own rack, public info about everyone else.
    """
    return GameView(
        seat=seat,
        hand=list(state.players[seat].hand),
        players=[
            PlayerView(
                seat=player.seat,
                name=player.name,
                tile_count=player.tile_count,
                discards=list(player.discards),
                has_opened=player.has_opened,
            )
            for player in state.players
        ],
        indicator=state.indicator,
        okey=state.okey,
        stock_count=len(state.stock),
        current_seat=state.current_seat,
        turn_phase=state.turn_phase,
        turn_count=state.turn_count,
        can_discard=can_discard(state, seat),
        claimable_discard=state.claimable_discard if seat == state.current_seat else None,
        ledger=[
            LedgerEntryView(seat=entry.seat, total=entry.total, turn=entry.turn, combinations=list(entry.combinations))
            for entry in state.ledger.entries
        ],
    )
