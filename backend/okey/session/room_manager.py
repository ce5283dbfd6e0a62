"""Room lifecycle: creation, joining, leaving and the hand-off to a match."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import structlog

from okey.messaging.types import (
    ErrorMessage,
    PlayerJoinedMessage,
    PlayerLeftMessage,
    RoomJoinedMessage,
    RoomLeftMessage,
    SessionChatMessage,
    SessionErrorCode,
)
from okey.session.broadcast import broadcast_to_players
from okey.session.room import Room, RoomPlayer
from okey.session.types import RoomInfo

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from okey.logic.settings import GameSettings
    from okey.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class RoomManager:
    """Own all room state and start a match once a room is full.

    Game creation is delegated to the on_transition callback so this class
    knows nothing about the game layer.
    """

    def __init__(
        self,
        *,
        on_transition: Callable[[str, list[RoomPlayer], GameSettings], Coroutine[Any, Any, None]],
        is_in_active_game: Callable[[str], bool],
    ) -> None:
        self._on_transition = on_transition
        self._is_in_active_game = is_in_active_game
        self._rooms: dict[str, Room] = {}
        self._room_players: dict[str, RoomPlayer] = {}  # connection_id -> RoomPlayer
        self._room_locks: dict[str, asyncio.Lock] = {}

    def create_room(self, room_id: str, settings: GameSettings | None = None) -> Room:
        room = Room(room_id=room_id) if settings is None else Room(room_id=room_id, settings=settings)
        self._rooms[room_id] = room
        self._room_locks[room_id] = asyncio.Lock()
        logger.info("room created", room_id=room_id)
        return room

    def get_room(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def is_in_room(self, connection_id: str) -> bool:
        return connection_id in self._room_players

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def get_rooms_info(self) -> list[RoomInfo]:
        return [
            RoomInfo(
                room_id=room.room_id,
                player_count=room.player_count,
                seats_left=room.seats_left,
                total_seats=room.total_seats,
                players=room.player_names,
            )
            for room in self._rooms.values()
        ]

    async def join_room(self, connection: ConnectionProtocol, room_id: str, player_name: str) -> None:
        """Seat a player in a room; the player filling the last seat starts the match."""
        if self._is_in_active_game(connection.connection_id):
            await self._send_error(connection, SessionErrorCode.ALREADY_IN_GAME, "You must leave your current game first")
            return
        if connection.connection_id in self._room_players:
            await self._send_error(connection, SessionErrorCode.ALREADY_IN_ROOM, "You must leave your current room first")
            return

        room_lock = self._room_locks.get(room_id)
        if room_lock is None:
            await self._send_error(connection, SessionErrorCode.ROOM_NOT_FOUND, "Room does not exist")
            return

        async with room_lock:
            if await self._validate_join_room(room_id, player_name, connection):
                return
            room = self._rooms[room_id]
            room_player = RoomPlayer(connection=connection, name=player_name, room_id=room_id)
            self._room_players[connection.connection_id] = room_player
            room.players[connection.connection_id] = room_player

            player_info = room.get_player_info()
            seats_left = room.seats_left
            should_transition = room.is_full
            if should_transition:
                room.transitioning = True

        logger.info("player joined room", room_id=room_id, player_name=player_name, seats_left=seats_left)
        await connection.send_message(
            RoomJoinedMessage(
                room_id=room_id,
                player_name=player_name,
                players=player_info,
                seats_left=seats_left,
            ).model_dump(),
        )
        await self._broadcast_to_room(
            room=room,
            message=PlayerJoinedMessage(player_name=player_name).model_dump(),
            exclude_connection_id=connection.connection_id,
        )

        if should_transition:
            await self._transition_room_to_game(room_id)

    async def leave_room(self, connection: ConnectionProtocol, *, notify_player: bool = True) -> None:
        room_player = self._room_players.get(connection.connection_id)
        if room_player is None:
            return

        room_id = room_player.room_id
        room_lock = self._room_locks.get(room_id)
        if room_lock is None:
            self._room_players.pop(connection.connection_id, None)
            return

        async with room_lock:
            room = self._rooms.get(room_id)
            self._room_players.pop(connection.connection_id, None)
            if room is None:
                return
            room.players.pop(connection.connection_id, None)
            # rooms are created explicitly, so an empty room stays open for new players

        if notify_player:
            with contextlib.suppress(RuntimeError, OSError):
                await connection.send_message(RoomLeftMessage().model_dump())
        await self._broadcast_to_room(room=room, message=PlayerLeftMessage(player_name=room_player.name).model_dump())

    async def broadcast_room_chat(self, connection: ConnectionProtocol, text: str) -> None:
        room_player = self._room_players.get(connection.connection_id)
        if room_player is None:
            await self._send_error(connection, SessionErrorCode.NOT_IN_ROOM, "You must join a room first")
            return
        room = self._rooms.get(room_player.room_id)
        if room is None:
            return
        await self._broadcast_to_room(
            room=room,
            message=SessionChatMessage(player_name=room_player.name, text=text).model_dump(),
        )

    async def _validate_join_room(self, room_id: str, player_name: str, connection: ConnectionProtocol) -> bool:
        """Check join preconditions under the room lock.

        Returns True if the join was refused (error already sent).
        """
        room = self._rooms.get(room_id)
        if room is None:
            await self._send_error(connection, SessionErrorCode.ROOM_NOT_FOUND, "Room does not exist")
            return True
        if room.transitioning:
            await self._send_error(connection, SessionErrorCode.ROOM_TRANSITIONING, "Room is starting a match")
            return True
        if room.is_full:
            await self._send_error(connection, SessionErrorCode.ROOM_FULL, "Room is full")
            return True
        if player_name in room.player_names:
            await self._send_error(connection, SessionErrorCode.NAME_TAKEN, "That name is already taken in this room")
            return True
        return False

    async def _transition_room_to_game(self, room_id: str) -> None:
        """Hand a full room over to the game layer."""
        room_lock = self._room_locks.get(room_id)
        if room_lock is None:
            return
        async with room_lock:
            room = self._rooms.get(room_id)
            if room is None or not room.transitioning:
                return
            # a player may have left between the join releasing the lock and now
            if not room.is_full:
                room.transitioning = False
                return

            room_players = list(room.players.values())
            settings = room.settings
            for rp in room_players:
                self._room_players.pop(rp.connection_id, None)
            self._rooms.pop(room_id, None)

        self._room_locks.pop(room_id, None)
        logger.info("room full, starting match", room_id=room_id)
        await self._on_transition(room_id, room_players, settings)

    async def _broadcast_to_room(
        self,
        room: Room,
        message: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> None:
        await broadcast_to_players(room.players, message, exclude_connection_id)

    @staticmethod
    async def _send_error(connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump())
