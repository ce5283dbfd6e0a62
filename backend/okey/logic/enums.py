"""
String enum definitions for Okey game concepts.
"""

from enum import Enum


class TileColour(str, Enum):
    """Tile colours, in colour-index order."""

    RED = "red"
    YELLOW = "yellow"
    BLACK = "black"
    BLUE = "blue"

    @property
    def index(self) -> int:
        return _COLOUR_ORDER.index(self)


_COLOUR_ORDER: tuple[TileColour, ...] = tuple(TileColour)


class CombinationKind(str, Enum):
    """Shape of a valid group. An all-joker group counts as a run."""

    RUN = "run"
    SET = "set"


class DrawSource(str, Enum):
    """Where a player takes their tile from."""

    STOCK = "stock"
    LEFT_DISCARD = "left_discard"


class TurnPhase(str, Enum):
    AWAITING_DRAW = "awaiting_draw"
    AWAITING_DISCARD = "awaiting_discard"


class MatchPhase(str, Enum):
    PLAYING = "playing"
    FINISHED = "finished"


class MatchEndReason(str, Enum):
    """Why a match stopped."""

    FINISHED = "finished"
    STOCK_EXHAUSTED = "stock_exhausted"
    ABORTED = "aborted"


class GameAction(str, Enum):
    """Actions dispatched from client to game service."""

    DRAW = "draw"
    DISCARD = "discard"
    COMMIT = "commit"
    FINISH = "finish"
    ARRANGE = "arrange"
    EVALUATE = "evaluate"


class GameErrorCode(str, Enum):
    """Error codes sent to clients for rejected game actions."""

    NOT_YOUR_TURN = "not_your_turn"
    NO_DRAW_RIGHT = "no_draw_right"
    MUST_DRAW_FIRST = "must_draw_first"
    STOCK_EMPTY = "stock_empty"
    DISCARD_UNAVAILABLE = "discard_unavailable"
    TILE_NOT_IN_HAND = "tile_not_in_hand"
    INVALID_COMBINATION = "invalid_combination"
    INSUFFICIENT_POINTS = "insufficient_points"
    INVALID_ARRANGEMENT = "invalid_arrangement"
    INVALID_FINISH = "invalid_finish"
    MATCH_NOT_IN_PROGRESS = "match_not_in_progress"
    UNSUPPORTED_SETTINGS = "unsupported_settings"
    INVALID_ACTION = "invalid_action"
    GAME_ERROR = "game_error"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_ACTION = "unknown_action"
