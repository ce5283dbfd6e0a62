"""
Tile representation utilities for the Okey game.
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from okey.logic.enums import TileColour

# tile ids (2 copies of each numbered tile):
# red: 0-25, yellow: 26-51, black: 52-77, blue: 78-103
# jokers ("fake okey"): 104, 105
COPIES_PER_FACE = 2
MIN_NUMBER = 1
MAX_NUMBER = 13
NUMBERS_PER_COLOUR = MAX_NUMBER - MIN_NUMBER + 1
COLOURS: tuple[TileColour, ...] = tuple(TileColour)

NUM_FACES = len(COLOURS) * NUMBERS_PER_COLOUR  # 52
NUM_NUMBERED_TILES = NUM_FACES * COPIES_PER_FACE  # 104
JOKER_IDS: tuple[int, ...] = (104, 105)
NUM_TILES = NUM_NUMBERED_TILES + len(JOKER_IDS)  # 106


class TileFace(BaseModel):
    """A (colour, number) value. The okey is a TileFace."""

    model_config = ConfigDict(frozen=True)

    colour: TileColour
    number: int = Field(ge=MIN_NUMBER, le=MAX_NUMBER)

    def __str__(self) -> str:
        return f"{self.colour.value}{self.number}"


def validate_tile_id(tile_id: int) -> None:
    if not 0 <= tile_id < NUM_TILES:
        raise ValueError(f"tile id {tile_id} out of range [0, {NUM_TILES})")


def is_joker(tile_id: int) -> bool:
    return tile_id in JOKER_IDS


def tile_kind(tile_id: int) -> int:
    """
    Face index 0-51 of a numbered tile (both copies share a kind).
    """
    if is_joker(tile_id):
        raise ValueError(f"joker {tile_id} has no face")
    return tile_id // COPIES_PER_FACE


def tile_colour(tile_id: int) -> TileColour | None:
    """Colour of a numbered tile; None for jokers."""
    if is_joker(tile_id):
        return None
    return COLOURS[tile_kind(tile_id) // NUMBERS_PER_COLOUR]


def tile_number(tile_id: int) -> int | None:
    """Number (1-13) of a numbered tile; None for jokers."""
    if is_joker(tile_id):
        return None
    return tile_kind(tile_id) % NUMBERS_PER_COLOUR + MIN_NUMBER


def tile_face(tile_id: int) -> TileFace:
    if is_joker(tile_id):
        raise ValueError(f"joker {tile_id} has no face")
    kind = tile_kind(tile_id)
    return TileFace(colour=COLOURS[kind // NUMBERS_PER_COLOUR], number=kind % NUMBERS_PER_COLOUR + MIN_NUMBER)


def make_tile_id(colour: TileColour, number: int, copy: int = 0) -> int:
    """
    Build a numbered tile id from its face and copy index (0 or 1).
    """
    if not MIN_NUMBER <= number <= MAX_NUMBER:
        raise ValueError(f"number {number} out of range")
    if not 0 <= copy < COPIES_PER_FACE:
        raise ValueError(f"copy {copy} out of range")
    return (colour.index * NUMBERS_PER_COLOUR + number - MIN_NUMBER) * COPIES_PER_FACE + copy


def effective_face(tile_id: int, okey: TileFace) -> TileFace:
    """
    Value a tile takes for scoring and sorting.

    Jokers take the okey's face; every other tile keeps its own.
    """
    if is_joker(tile_id):
        return okey
    return tile_face(tile_id)


def effective_number(tile_id: int, okey: TileFace) -> int:
    return effective_face(tile_id, okey).number


def tile_sort_key(tile_id: int, okey: TileFace) -> tuple[int, int, int]:
    """Sort by effective number, then colour index, then tile id."""
    face = effective_face(tile_id, okey)
    return face.number, face.colour.index, tile_id


def sort_tiles(tiles: Iterable[int], okey: TileFace) -> list[int]:
    return sorted(tiles, key=lambda t: tile_sort_key(t, okey))


def hand_value(tiles: Iterable[int], okey: TileFace) -> int:
    """
    Sum of effective numbers, used for end-of-match penalties.
    """
    return sum(effective_number(t, okey) for t in tiles)


def tile_label(tile_id: int) -> str:
    """Short human-readable label for logs ("red7", "joker")."""
    if is_joker(tile_id):
        return "joker"
    return str(tile_face(tile_id))
