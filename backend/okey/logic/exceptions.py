"""Typed domain exceptions for Okey rule violations.

Every rule violation raised by the logic layer is a GameRuleError carrying a
GameErrorCode. The action handlers catch them at the service boundary and
turn them into ErrorEvents for the acting seat; the state is never touched.

ConstructionInvariantError is deliberately outside that hierarchy: a broken
deck or deal aborts match setup instead of being reported to a player.
"""

from typing import ClassVar

from okey.logic.enums import GameErrorCode


class GameRuleError(Exception):
    """Base exception for game rule violations."""

    code: ClassVar[GameErrorCode] = GameErrorCode.GAME_ERROR


class PreconditionViolation(GameRuleError):
    """The action is not allowed in the current turn state."""


class NotYourTurnError(PreconditionViolation):
    code = GameErrorCode.NOT_YOUR_TURN


class NoDrawRightError(PreconditionViolation):
    code = GameErrorCode.NO_DRAW_RIGHT


class MustDrawFirstError(PreconditionViolation):
    code = GameErrorCode.MUST_DRAW_FIRST


class DiscardUnavailableError(PreconditionViolation):
    """Nothing to take from the left neighbour's discard pile."""

    code = GameErrorCode.DISCARD_UNAVAILABLE


class TileNotInHandError(PreconditionViolation):
    code = GameErrorCode.TILE_NOT_IN_HAND


class MatchNotInProgressError(PreconditionViolation):
    code = GameErrorCode.MATCH_NOT_IN_PROGRESS


class StockEmptyError(GameRuleError):
    """The stock is exhausted. No hand was changed."""

    code = GameErrorCode.STOCK_EMPTY


class InvalidCombinationError(GameRuleError):
    """A committed window is not a valid run or set, or windows overlap."""

    code = GameErrorCode.INVALID_COMBINATION


class InsufficientPointsError(InvalidCombinationError):
    """Opening commit is below the opening threshold."""

    code = GameErrorCode.INSUFFICIENT_POINTS

    def __init__(self, total: int, threshold: int) -> None:
        self.total = total
        self.threshold = threshold
        super().__init__(f"opening total {total} is below {threshold}")


class InvalidActionError(GameRuleError):
    """Action is not valid in the current game state."""

    code = GameErrorCode.INVALID_ACTION


class InvalidArrangementError(GameRuleError):
    code = GameErrorCode.INVALID_ARRANGEMENT


class InvalidFinishError(GameRuleError):
    code = GameErrorCode.INVALID_FINISH


class UnsupportedSettingsError(GameRuleError):
    """Game settings contain values the engine cannot honour."""

    code = GameErrorCode.UNSUPPORTED_SETTINGS


class ConstructionInvariantError(Exception):
    """Deck or deal construction broke a tile-count invariant.

    Attributes:
        expected: Tile count that should have been present.
        actual: Tile count that was found.

    """

    def __init__(self, message: str, *, expected: int | None = None, actual: int | None = None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(message)
