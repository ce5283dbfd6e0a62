from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from okey.logic.settings import GameSettings

if TYPE_CHECKING:
    from okey.messaging.protocol import ConnectionProtocol


@dataclass
class Player:
    """A connected player in a game.

    Lifecycle:
    - Created when the room fills (game_id is set)
    - On match start: seat is assigned
    - On leave_game: game_id and seat are cleared
    - On unregister: removed from the registry entirely
    """

    connection: ConnectionProtocol
    name: str
    game_id: str | None = None
    seat: int | None = None

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id


@dataclass
class Game:
    game_id: str
    started: bool = False
    ended: bool = False
    players: dict[str, Player] = field(default_factory=dict)  # connection_id -> Player
    settings: GameSettings = field(default_factory=GameSettings)

    @property
    def player_names(self) -> list[str]:
        return [p.name for p in self.players.values()]

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return self.player_count == 0
