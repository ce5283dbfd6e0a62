"""
Immutable match state models for Okey.

Hands are racks of slots: a slot holds a tile id or None when empty. The
order of slots belongs to the player and drives the combination search.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from okey.logic.combinations import Combination
from okey.logic.enums import MatchEndReason, MatchPhase, TurnPhase
from okey.logic.settings import GameSettings
from okey.logic.tiles import TileFace


class OkeyPlayer(BaseModel):
    """A seated player."""

    model_config = ConfigDict(frozen=True)

    seat: int  # 0-3, player number is seat + 1
    name: str
    hand: tuple[int | None, ...] = ()
    discards: tuple[int, ...] = ()  # discard pile, top is last
    has_opened: bool = False  # committed an opening of at least the threshold

    @property
    def tiles(self) -> tuple[int, ...]:
        """Tiles in hand, ignoring empty slots."""
        return tuple(t for t in self.hand if t is not None)

    @property
    def tile_count(self) -> int:
        return len(self.tiles)


class LedgerEntry(BaseModel):
    """One accepted commit."""

    model_config = ConfigDict(frozen=True)

    seat: int
    combinations: tuple[Combination, ...]
    total: int
    turn: int

    @property
    def tile_count(self) -> int:
        return sum(len(c.tile_ids) for c in self.combinations)


class TableLedger(BaseModel):
    """Append-only record of commits for the current match."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[LedgerEntry, ...] = ()


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: MatchEndReason
    winner_seat: int | None = None
    final_tile: int | None = None
    is_joker_finish: bool = False
    winning_combinations: tuple[Combination, ...] = ()
    penalties: tuple[int, ...] = ()  # indexed by seat


class MatchState(BaseModel):
    """
    Full state of one Okey match.

    draw_right: the current player may still draw this turn.
    has_drawn: the current player drew this turn and may discard.
    claimable_discard: the left neighbour's last discard, takeable by the
    current player until they draw.
    """

    model_config = ConfigDict(frozen=True)

    players: tuple[OkeyPlayer, ...]
    stock: tuple[int, ...]
    okey: TileFace
    indicator: int
    first_seat: int = 0
    current_seat: int = 0
    draw_right: bool = False
    has_drawn: bool = False
    turn_count: int = 0
    claimable_discard: int | None = None
    phase: MatchPhase = MatchPhase.PLAYING
    ledger: TableLedger = TableLedger()
    settings: GameSettings = GameSettings()
    seed: str = ""
    result: MatchResult | None = None

    @property
    def turn_phase(self) -> TurnPhase:
        return TurnPhase.AWAITING_DRAW if self.draw_right else TurnPhase.AWAITING_DISCARD

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def current_player(self) -> OkeyPlayer:
        return self.players[self.current_seat]

    def left_seat(self, seat: int) -> int:
        """Seat whose discards this seat may take."""
        return (seat - 1) % self.num_players
