from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import structlog

from okey.logic.events import BroadcastTarget, MatchEndedEvent, SeatTarget
from okey.logic.exceptions import ConstructionInvariantError, GameRuleError
from okey.messaging.event_payload import service_event_payload
from okey.messaging.types import (
    ErrorMessage,
    GameLeftMessage,
    GameStartingMessage,
    PlayerLeftMessage,
    PongMessage,
    SessionChatMessage,
    SessionErrorCode,
)
from okey.session.broadcast import broadcast_to_players
from okey.session.models import Game, Player
from okey.session.room_manager import RoomManager
from shared.logging import bind_game_context, clear_game_context

if TYPE_CHECKING:
    from okey.logic.enums import GameAction
    from okey.logic.events import ServiceEvent
    from okey.logic.service import GameService
    from okey.logic.settings import GameSettings
    from okey.messaging.protocol import ConnectionProtocol
    from okey.session.room import Room, RoomPlayer
    from okey.session.types import RoomInfo

logger = structlog.get_logger()


class SessionManager:
    """
    Connection registry, rooms and running games.

    Every action, abort and broadcast for a started game runs under that
    game's asyncio.Lock, so a room processes one state change at a time while
    different rooms proceed concurrently.
    """

    def __init__(self, game_service: GameService) -> None:
        self._game_service = game_service
        self._connections: dict[str, ConnectionProtocol] = {}
        self._players: dict[str, Player] = {}  # connection_id -> Player
        self._games: dict[str, Game] = {}  # game_id -> Game
        self._game_locks: dict[str, asyncio.Lock] = {}  # game_id -> Lock
        self._room_manager = RoomManager(
            on_transition=self._handle_room_transition,
            is_in_active_game=self.is_in_active_game,
        )

    def _get_game_lock(self, game_id: str) -> asyncio.Lock | None:
        """Per-game lock, or None before the match starts or after cleanup."""
        return self._game_locks.get(game_id)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._players.pop(connection.connection_id, None)

    def get_game(self, game_id: str) -> Game | None:
        return self._games.get(game_id)

    @property
    def game_count(self) -> int:
        return len(self._games)

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        logger.warning("session error sent to client", error_code=code.value, error_message=message)
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump())

    # --- Rooms (delegated) ---

    def create_room(self, room_id: str, settings: GameSettings | None = None) -> Room:
        return self._room_manager.create_room(room_id, settings)

    def get_room(self, room_id: str) -> Room | None:
        return self._room_manager.get_room(room_id)

    def is_in_room(self, connection_id: str) -> bool:
        return self._room_manager.is_in_room(connection_id)

    def is_in_active_game(self, connection_id: str) -> bool:
        player = self._players.get(connection_id)
        return player is not None and player.game_id is not None

    @property
    def room_count(self) -> int:
        return self._room_manager.room_count

    def get_rooms_info(self) -> list[RoomInfo]:
        return self._room_manager.get_rooms_info()

    async def join_room(self, connection: ConnectionProtocol, room_id: str, player_name: str) -> None:
        await self._room_manager.join_room(connection, room_id, player_name)

    async def leave_room(self, connection: ConnectionProtocol, *, notify_player: bool = True) -> None:
        await self._room_manager.leave_room(connection, notify_player=notify_player)

    async def broadcast_room_chat(self, connection: ConnectionProtocol, text: str) -> None:
        await self._room_manager.broadcast_room_chat(connection, text)

    # --- Match lifecycle ---

    async def _handle_room_transition(
        self,
        room_id: str,
        room_players: list[RoomPlayer],
        settings: GameSettings,
    ) -> None:
        """Create a Game from a full room and start the match."""
        game = Game(game_id=room_id, settings=settings)
        self._games[room_id] = game
        for rp in room_players:
            player = Player(connection=rp.connection, name=rp.name, game_id=room_id)
            self._players[rp.connection_id] = player
            game.players[rp.connection_id] = player

        await self._broadcast_to_game(game, GameStartingMessage().model_dump())
        await self._start_match(game)

    def _is_game_alive(self, game: Game) -> bool:
        return self._games.get(game.game_id) is game and not game.is_empty

    async def _start_match(self, game: Game) -> None:
        # players may have disconnected while the starting message was sent
        if not self._is_game_alive(game):
            return
        if game.player_count != game.settings.num_players:
            await self._abandon_unstarted_game(game)
            return

        bind_game_context(game.game_id)
        try:
            events = await self._game_service.start_game(game.game_id, game.player_names, settings=game.settings)
        except (ConstructionInvariantError, GameRuleError):
            logger.exception("match setup failed")
            await self._close_all(game, code=1011, reason="setup_failed")
            return
        finally:
            clear_game_context()

        game.started = True
        for player in game.players.values():
            player.seat = self._game_service.get_player_seat(game.game_id, player.name)

        self._game_locks[game.game_id] = asyncio.Lock()
        async with self._game_locks[game.game_id]:
            await self._broadcast_events(game, events)

    async def _abandon_unstarted_game(self, game: Game) -> None:
        logger.info("players left before the match started", game_id=game.game_id)
        for player in list(game.players.values()):
            player.game_id = None
            with contextlib.suppress(RuntimeError, OSError):
                await player.connection.send_message(GameLeftMessage().model_dump())
        game.players.clear()
        self._games.pop(game.game_id, None)

    async def handle_game_action(
        self,
        connection: ConnectionProtocol,
        action: GameAction,
        data: dict[str, Any],
    ) -> None:
        player = self._players.get(connection.connection_id)
        if player is None or player.game_id is None:
            await self._send_error(connection, SessionErrorCode.NOT_IN_GAME, "You must join a game first")
            return

        game = self._games.get(player.game_id)
        if game is None:
            return

        game_id = player.game_id
        lock = self._get_game_lock(game_id)
        if lock is None:
            await self._send_error(connection, SessionErrorCode.GAME_NOT_STARTED, "Game has not started yet")
            return

        bind_game_context(game_id, player.seat)
        async with lock:
            events = await self._game_service.handle_action(
                game_id=game_id,
                player_name=player.name,
                action=action,
                data=data,
            )
            await self._broadcast_events(game, events)

        # closing triggers the disconnect handler, which takes the game lock again
        if self._has_match_ended(events):
            await self._close_connections_on_match_end(game)

    async def leave_game(self, connection: ConnectionProtocol, *, notify_player: bool = True) -> None:
        """Remove a player from their game. Leaving a running match aborts it for everyone."""
        player = self._players.get(connection.connection_id)
        if player is None or player.game_id is None:
            return

        game = self._games.get(player.game_id)
        if game is None:
            player.game_id = None
            player.seat = None
            return

        game_id = game.game_id
        player_name = player.name
        logger.info("player left game", game_id=game_id, player_name=player_name)

        abort_events: list[ServiceEvent] = []
        lock = self._get_game_lock(game_id)
        if lock is not None:
            async with lock:
                self._remove_player_from_game(game, connection.connection_id, player)
                await self._notify_player_left(connection, game, player_name, notify_player=notify_player)
                if not game.ended:
                    abort_events = await self._game_service.abort_game(game_id)
                    await self._broadcast_events(game, abort_events)
        else:
            self._remove_player_from_game(game, connection.connection_id, player)
            await self._notify_player_left(connection, game, player_name, notify_player=notify_player)

        if self._has_match_ended(abort_events):
            await self._close_connections_on_match_end(game)
        await self._cleanup_empty_game(game_id, game)

    @staticmethod
    def _remove_player_from_game(game: Game, connection_id: str, player: Player) -> None:
        game.players.pop(connection_id, None)
        player.game_id = None
        player.seat = None

    async def _notify_player_left(
        self,
        connection: ConnectionProtocol,
        game: Game,
        player_name: str,
        *,
        notify_player: bool,
    ) -> None:
        if notify_player:
            with contextlib.suppress(RuntimeError, OSError):
                await connection.send_message(GameLeftMessage().model_dump())
        await self._broadcast_to_game(game, PlayerLeftMessage(player_name=player_name).model_dump())

    async def _cleanup_empty_game(self, game_id: str, game: Game) -> None:
        if game.is_empty and self._games.pop(game_id, None) is not None:
            logger.info("game is empty, cleaning up", game_id=game_id)
            self._game_locks.pop(game_id, None)
            self._game_service.cleanup_game(game_id)

    # --- Chat and heartbeat ---

    async def broadcast_chat(self, connection: ConnectionProtocol, text: str) -> None:
        player = self._players.get(connection.connection_id)
        if player is None or player.game_id is None:
            await self._send_error(connection, SessionErrorCode.NOT_IN_GAME, "You must join a game first")
            return
        game = self._games.get(player.game_id)
        if game is None:
            return
        await self._broadcast_to_game(game, SessionChatMessage(player_name=player.name, text=text).model_dump())

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(PongMessage().model_dump())

    # --- Delivery ---

    async def _broadcast_events(self, game: Game, events: list[ServiceEvent]) -> None:
        """Deliver events by typed target."""
        seat_to_player = {p.seat: p for p in game.players.values() if p.seat is not None}
        for event in events:
            message = service_event_payload(event)
            if isinstance(event.target, BroadcastTarget):
                await self._broadcast_to_game(game, message)
            elif isinstance(event.target, SeatTarget):
                player = seat_to_player.get(event.target.seat)
                if player:
                    with contextlib.suppress(RuntimeError, OSError):
                        await player.connection.send_message(message)

    async def _broadcast_to_game(
        self,
        game: Game,
        message: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> None:
        await broadcast_to_players(game.players, message, exclude_connection_id)

    async def close_game_on_error(self, connection: ConnectionProtocol) -> None:
        """
        Close every connection of the game after an unrecoverable error.

        The disconnect handlers clean up the session state as sockets close.
        """
        player = self._players.get(connection.connection_id)
        if player is None or player.game_id is None:
            return
        game = self._games.get(player.game_id)
        if game is None:
            return
        await self._close_all(game, code=1011, reason="internal_error")

    async def _close_connections_on_match_end(self, game: Game) -> None:
        game.ended = True
        await self._close_all(game, code=1000, reason="game_ended")

    @staticmethod
    async def _close_all(game: Game, *, code: int, reason: str) -> None:
        for player in list(game.players.values()):
            with contextlib.suppress(RuntimeError, OSError):
                await player.connection.close(code=code, reason=reason)

    @staticmethod
    def _has_match_ended(events: list[ServiceEvent]) -> bool:
        return any(isinstance(event.data, MatchEndedEvent) for event in events)
