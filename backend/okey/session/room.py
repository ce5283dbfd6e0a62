"""Room model for the pre-match lobby."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel

from okey.logic.settings import GameSettings

if TYPE_CHECKING:
    from okey.messaging.protocol import ConnectionProtocol


class RoomPlayerInfo(BaseModel):
    """Player info for room state messages."""

    name: str
    seat: int


@dataclass
class RoomPlayer:
    """A player waiting in a room. Join order decides the seat."""

    connection: ConnectionProtocol
    name: str
    room_id: str

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id


@dataclass
class Room:
    """Lobby where four players gather. The match starts when the last seat fills."""

    room_id: str
    transitioning: bool = False
    players: dict[str, RoomPlayer] = field(default_factory=dict)  # connection_id -> RoomPlayer, join order
    settings: GameSettings = field(default_factory=GameSettings)

    @property
    def player_names(self) -> list[str]:
        return [p.name for p in self.players.values()]

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def total_seats(self) -> int:
        return self.settings.num_players

    @property
    def seats_left(self) -> int:
        return self.total_seats - self.player_count

    @property
    def is_empty(self) -> bool:
        return self.player_count == 0

    @property
    def is_full(self) -> bool:
        return self.player_count >= self.total_seats

    def get_player_info(self) -> list[RoomPlayerInfo]:
        return [RoomPlayerInfo(name=p.name, seat=seat) for seat, p in enumerate(self.players.values())]
