"""
Pydantic models for game service payloads: action data, views, results.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from okey.logic.combinations import Combination
from okey.logic.enums import DrawSource, TurnPhase
from okey.logic.settings import MAX_HAND_SLOTS
from okey.logic.tiles import NUM_TILES, TileFace

TileId = Annotated[int, Field(ge=0, lt=NUM_TILES)]


class GamePlayerInfo(BaseModel):
    """Public identity of a seated player."""

    model_config = ConfigDict(frozen=True)

    seat: int
    name: str


class DrawActionData(BaseModel):
    """Data for draw action."""

    source: DrawSource = DrawSource.STOCK


class DiscardActionData(BaseModel):
    """Data for discard action."""

    tile_id: TileId


class CommitWindow(BaseModel):
    """Inclusive slot range of one combination in the committer's rack."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)


class CommitActionData(BaseModel):
    """Data for committing combinations to the table."""

    windows: list[CommitWindow] = Field(min_length=1)
    claimed_total: int | None = None


class FinishActionData(BaseModel):
    """Data for finishing the hand with a final tile."""

    tile_id: TileId


class ArrangeActionData(BaseModel):
    """New rack order: the same tiles, with None for empty slots."""

    slots: list[TileId | None] = Field(max_length=MAX_HAND_SLOTS)


class EvaluateActionData(BaseModel):
    """Rack to evaluate; the player's own rack when omitted."""

    slots: list[TileId | None] | None = Field(default=None, max_length=MAX_HAND_SLOTS)


class PlayerView(BaseModel):
    """What every seat can see about a player."""

    seat: int
    name: str
    tile_count: int
    discards: list[int]
    has_opened: bool


class LedgerEntryView(BaseModel):
    seat: int
    total: int
    turn: int
    combinations: list[Combination]


class GameView(BaseModel):
    """Full match view from one seat's perspective."""

    seat: int
    hand: list[int | None]
    players: list[PlayerView]
    indicator: int
    okey: TileFace
    stock_count: int
    current_seat: int
    turn_phase: TurnPhase
    turn_count: int
    can_discard: bool
    claimable_discard: int | None = None
    ledger: list[LedgerEntryView] = Field(default_factory=list)
