"""
Deck construction and stock operations for Okey.

The deck is built in two shuffle passes over one seeded RNG stream:

  1. the 104 numbered tiles are shuffled; the first tile is the indicator
  2. the two jokers are appended and the full set is shuffled again

The indicator stays in the deck as an ordinary tile. The top of the stock
is the end of the tuple, so drawing is a pop from the end.
"""

import structlog
from pydantic import BaseModel, ConfigDict

from okey.logic.exceptions import ConstructionInvariantError
from okey.logic.rng import create_deck_rng, shuffle_tiles
from okey.logic.tiles import (
    JOKER_IDS,
    MAX_NUMBER,
    MIN_NUMBER,
    NUM_NUMBERED_TILES,
    NUM_TILES,
    TileFace,
    is_joker,
    tile_face,
)

logger = structlog.get_logger()


class DeckSetup(BaseModel):
    """Result of building a deck: the okey, its indicator and the full stock."""

    model_config = ConfigDict(frozen=True)

    okey: TileFace
    indicator: int
    stock: tuple[int, ...]


def compute_okey(indicator: int) -> TileFace:
    """
    The okey is the indicator's successor in the same colour; 13 wraps to 1.
    """
    if is_joker(indicator):
        raise ConstructionInvariantError("indicator must be a numbered tile")
    face = tile_face(indicator)
    number = MIN_NUMBER if face.number == MAX_NUMBER else face.number + 1
    return TileFace(colour=face.colour, number=number)


def validate_deck(tiles: tuple[int, ...] | list[int]) -> None:
    """Raise ConstructionInvariantError unless tiles is a permutation of every tile id."""
    if len(tiles) != NUM_TILES:
        raise ConstructionInvariantError(
            f"deck has {len(tiles)} tiles, expected {NUM_TILES}",
            expected=NUM_TILES,
            actual=len(tiles),
        )
    if sorted(tiles) != list(range(NUM_TILES)):
        raise ConstructionInvariantError("deck does not hold each tile id exactly once")


def build_deck(seed: str) -> DeckSetup:
    """
    Build and shuffle the deck for a match from a seed.
    """
    pcg = create_deck_rng(seed)
    numbered = shuffle_tiles(list(range(NUM_NUMBERED_TILES)), pcg)
    indicator = numbered[0]
    okey = compute_okey(indicator)

    stock = shuffle_tiles([*numbered, *JOKER_IDS], pcg)
    validate_deck(stock)

    logger.debug("deck built", indicator=indicator, okey=str(okey))
    return DeckSetup(okey=okey, indicator=indicator, stock=tuple(stock))


def build_deck_from_tiles(tiles: list[int], indicator: int) -> DeckSetup:
    """
    Build a deck from an explicit tile order, for tests and replays.

    The stock top is the last element of tiles.
    """
    validate_deck(tiles)
    return DeckSetup(okey=compute_okey(indicator), indicator=indicator, stock=tuple(tiles))


def draw_from_stock(stock: tuple[int, ...]) -> tuple[tuple[int, ...], int | None]:
    """
    Pop the top tile. Returns (stock, None) when the stock is exhausted.
    """
    if not stock:
        return stock, None
    return stock[:-1], stock[-1]


def tiles_remaining(stock: tuple[int, ...]) -> int:
    return len(stock)


def is_stock_exhausted(stock: tuple[int, ...]) -> bool:
    return not stock
