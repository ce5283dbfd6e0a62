from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from okey.logic.deck import DeckSetup
    from okey.logic.enums import GameAction
    from okey.logic.events import ServiceEvent
    from okey.logic.settings import GameSettings
    from okey.logic.state import MatchState


class GameService(ABC):
    """
    Abstract interface for game logic.

    Events returned by methods carry a typed target:
    - BroadcastTarget: send to all players in the game
    - SeatTarget(seat): send only to the player at that seat
    """

    @abstractmethod
    async def handle_action(
        self,
        game_id: str,
        player_name: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        """
        Handle a game action from a player.

        Returns a list of service events to deliver.
        """
        ...

    @abstractmethod
    async def start_game(
        self,
        game_id: str,
        player_names: list[str],
        *,
        seed: str | None = None,
        settings: GameSettings | None = None,
        deck: DeckSetup | None = None,
    ) -> list[ServiceEvent]:
        """
        Start a match with the given players, seated in list order.

        Returns the match-started broadcast and one dealt-hand event per seat.
        A seed makes the deal reproducible; a deck overrides the seed.
        """
        ...

    @abstractmethod
    def get_player_seat(self, game_id: str, player_name: str) -> int | None:
        """
        Get the seat number for a player by name.
        """
        ...

    @abstractmethod
    def get_game_seed(self, game_id: str) -> str | None:
        """Return the seed for a game, or None if game doesn't exist."""
        ...

    @abstractmethod
    def get_game_state(self, game_id: str) -> MatchState | None:
        """Return the current match state, or None if game doesn't exist."""
        ...

    @abstractmethod
    async def abort_game(self, game_id: str) -> list[ServiceEvent]:
        """
        Stop a running match without scoring (a player left mid-match).
        """
        ...

    @abstractmethod
    def cleanup_game(self, game_id: str) -> None:
        """
        Remove all state for a game that was abandoned or finished.
        """
        ...
