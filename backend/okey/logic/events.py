"""Domain event models and the service event transport container.

Domain events are what the logic layer emits. ServiceEvent wraps them with a
typed routing target; convert_events() builds those wrappers from the
``target`` string every event carries ("all" or "seat_N").
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from okey.logic.combinations import Combination, HandEvaluation
from okey.logic.enums import DrawSource, GameErrorCode
from okey.logic.state import MatchResult
from okey.logic.tiles import TileFace
from okey.logic.types import GamePlayerInfo, GameView

# ---------------------------------------------------------------------------
# Typed routing targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastTarget:
    """Event should be sent to all players in the game."""


@dataclass(frozen=True)
class SeatTarget:
    """Event should be sent to a specific seat."""

    seat: int


EventTarget = BroadcastTarget | SeatTarget


def seat_target(seat: int) -> str:
    return f"seat_{seat}"


def parse_event_target(value: str) -> EventTarget:
    """Parse a string target into a typed EventTarget."""
    if value == "all":
        return BroadcastTarget()
    if value.startswith("seat_"):
        seat = int(value.split("_")[1])
        if seat < 0:
            raise ValueError(f"invalid seat number in target: {value}")
        return SeatTarget(seat=seat)
    raise ValueError(f"invalid target value: {value}")


# ---------------------------------------------------------------------------
# Event type enum
# ---------------------------------------------------------------------------


class EventType(StrEnum):
    """Types of game events."""

    MATCH_STARTED = "match_started"
    HAND_DEALT = "hand_dealt"
    DRAW = "draw"
    PLAYER_DREW = "player_drew"
    DISCARD = "discard"
    TURN = "turn"
    COMBINATIONS_COMMITTED = "combinations_committed"
    HAND_ARRANGED = "hand_arranged"
    HAND_EVALUATED = "hand_evaluated"
    STOCK_EXHAUSTED = "stock_exhausted"
    MATCH_ENDED = "match_ended"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Domain event models
# ---------------------------------------------------------------------------


class GameEvent(BaseModel):
    """Base class for all domain game events."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    target: str


class MatchStartedEvent(GameEvent):
    """Broadcast once the deck is built and hands are dealt."""

    type: Literal[EventType.MATCH_STARTED] = EventType.MATCH_STARTED
    target: str = "all"
    game_id: str
    players: list[GamePlayerInfo]
    first_seat: int
    indicator: int
    okey: TileFace
    stock_count: int


class HandDealtEvent(GameEvent):
    """Sent to each seat with its own starting view."""

    type: Literal[EventType.HAND_DEALT] = EventType.HAND_DEALT
    view: GameView


class DrawEvent(GameEvent):
    """Sent to the drawing player with the tile they took."""

    type: Literal[EventType.DRAW] = EventType.DRAW
    seat: int
    tile_id: int
    source: DrawSource
    hand: list[int | None]


class PlayerDrewEvent(GameEvent):
    """Broadcast when a player draws. A stock tile stays hidden."""

    type: Literal[EventType.PLAYER_DREW] = EventType.PLAYER_DREW
    target: str = "all"
    seat: int
    source: DrawSource
    tile_id: int | None = None
    stock_count: int


class DiscardEvent(GameEvent):
    """Broadcast when a player discards a tile."""

    type: Literal[EventType.DISCARD] = EventType.DISCARD
    target: str = "all"
    seat: int
    tile_id: int


class TurnEvent(GameEvent):
    """Broadcast whenever the turn passes."""

    type: Literal[EventType.TURN] = EventType.TURN
    target: str = "all"
    current_seat: int
    turn_count: int
    stock_count: int


class CombinationsCommittedEvent(GameEvent):
    """Broadcast when a commit is accepted."""

    type: Literal[EventType.COMBINATIONS_COMMITTED] = EventType.COMBINATIONS_COMMITTED
    target: str = "all"
    seat: int
    combinations: list[Combination]
    total: int
    opened: bool


class HandArrangedEvent(GameEvent):
    type: Literal[EventType.HAND_ARRANGED] = EventType.HAND_ARRANGED
    hand: list[int | None]


class HandEvaluatedEvent(GameEvent):
    type: Literal[EventType.HAND_EVALUATED] = EventType.HAND_EVALUATED
    evaluation: HandEvaluation


class StockExhaustedEvent(GameEvent):
    """Broadcast when a draw finds the stock empty."""

    type: Literal[EventType.STOCK_EXHAUSTED] = EventType.STOCK_EXHAUSTED
    target: str = "all"
    seat: int


class MatchEndedEvent(GameEvent):
    type: Literal[EventType.MATCH_ENDED] = EventType.MATCH_ENDED
    target: str = "all"
    result: MatchResult


class ErrorEvent(GameEvent):
    """Sent to a player whose action was rejected."""

    type: Literal[EventType.ERROR] = EventType.ERROR
    code: GameErrorCode
    message: str


Event = (
    MatchStartedEvent
    | HandDealtEvent
    | DrawEvent
    | PlayerDrewEvent
    | DiscardEvent
    | TurnEvent
    | CombinationsCommittedEvent
    | HandArrangedEvent
    | HandEvaluatedEvent
    | StockExhaustedEvent
    | MatchEndedEvent
    | ErrorEvent
)


# ---------------------------------------------------------------------------
# Service event transport container
# ---------------------------------------------------------------------------


class ServiceEvent(BaseModel):
    """Event transport container for the game service layer."""

    model_config = {"arbitrary_types_allowed": True}

    event: EventType
    data: GameEvent
    target: EventTarget = BroadcastTarget()

    @model_validator(mode="after")
    def _ensure_event_matches_data(self) -> ServiceEvent:
        if self.event.value != self.data.type.value:
            raise ValueError(
                f"ServiceEvent.event '{self.event.value}' does not match data.type '{self.data.type.value}'",
            )
        return self


def convert_events(raw_events: list[GameEvent]) -> list[ServiceEvent]:
    """Wrap domain events with typed targets parsed from their target string."""
    return [
        ServiceEvent(event=event.type, data=event, target=parse_event_target(event.target)) for event in raw_events
    ]


def extract_match_result(events: list[ServiceEvent]) -> MatchResult | None:
    """Return the result carried by a MatchEndedEvent, if any."""
    for event in events:
        if isinstance(event.data, MatchEndedEvent):
            return event.data.result
    return None
