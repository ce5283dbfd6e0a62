"""
Initial deal for an Okey match.

Seats are served in order. The first seat takes one extra tile before its
regular hand, so it starts with 15 tiles and opens the match by discarding.
"""

import structlog

from okey.logic.exceptions import ConstructionInvariantError
from okey.logic.settings import GameSettings
from okey.logic.tiles import TileFace, sort_tiles

logger = structlog.get_logger()


def deal_initial_hands(
    stock: tuple[int, ...],
    okey: TileFace,
    first_seat: int,
    settings: GameSettings,
) -> tuple[tuple[int, ...], list[tuple[int, ...]]]:
    """
    Pop the starting hands off the stock.

    Returns the remaining stock and one hand per seat, each sorted by
    effective number and then colour.
    """
    expected = settings.tiles_dealt
    if len(stock) < expected:
        raise ConstructionInvariantError(
            f"stock has {len(stock)} tiles, deal needs {expected}",
            expected=expected,
            actual=len(stock),
        )

    remaining = list(stock)
    hands: list[tuple[int, ...]] = []
    for seat in range(settings.num_players):
        count = settings.hand_size
        if seat == first_seat:
            count += settings.first_player_extra_tiles
        dealt = [remaining.pop() for _ in range(count)]
        hands.append(tuple(sort_tiles(dealt, okey)))

    dealt_total = sum(len(hand) for hand in hands)
    if dealt_total != expected or len(remaining) != len(stock) - expected:
        raise ConstructionInvariantError(
            f"dealt {dealt_total} tiles, expected {expected}",
            expected=expected,
            actual=dealt_total,
        )

    logger.debug("hands dealt", first_seat=first_seat, stock_remaining=len(remaining))
    return tuple(remaining), hands
