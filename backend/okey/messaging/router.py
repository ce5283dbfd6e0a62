from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from okey.logic.exceptions import GameRuleError
from okey.messaging.types import (
    ArrangeMessage,
    ChatMessage,
    CommitMessage,
    DiscardMessage,
    DrawMessage,
    ErrorMessage,
    EvaluateMessage,
    FinishMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    PingMessage,
    SessionErrorCode,
    parse_client_message,
)

if TYPE_CHECKING:
    from okey.messaging.protocol import ConnectionProtocol
    from okey.session.manager import SessionManager

logger = structlog.get_logger()


_GAME_ACTION_TYPES = (
    DrawMessage,
    DiscardMessage,
    CommitMessage,
    FinishMessage,
    ArrangeMessage,
    EvaluateMessage,
)


class MessageRouter:
    """
    Routes incoming messages to the session manager.

    Pure dispatch logic, testable without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message", connection_id=connection.connection_id, error=str(e))
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(),
            )
            return

        if isinstance(message, JoinRoomMessage):
            await self._handle_join(connection, message)
        elif isinstance(message, LeaveRoomMessage):
            await self._session_manager.leave_room(connection)
        elif isinstance(message, _GAME_ACTION_TYPES):
            await self._handle_game_action(connection, message)
        elif isinstance(message, PingMessage):
            await self._session_manager.handle_ping(connection)
        elif isinstance(message, ChatMessage):
            await self._handle_chat(connection, message)

    async def _handle_join(self, connection: ConnectionProtocol, message: JoinRoomMessage) -> None:
        """A socket joins the room named in its URL path."""
        if message.room_id is not None and message.room_id != connection.room_id:
            logger.warning(
                "join for another room refused",
                connection_id=connection.connection_id,
                socket_room_id=connection.room_id,
                requested_room_id=message.room_id,
            )
            await connection.send_message(
                ErrorMessage(
                    code=SessionErrorCode.ROOM_MISMATCH,
                    message=f"This connection belongs to room {connection.room_id}",
                ).model_dump(),
            )
            return
        await self._session_manager.join_room(
            connection=connection,
            room_id=connection.room_id,
            player_name=message.player_name,
        )

    async def _handle_game_action(
        self,
        connection: ConnectionProtocol,
        message: DrawMessage | DiscardMessage | CommitMessage | FinishMessage | ArrangeMessage | EvaluateMessage,
    ) -> None:
        """Route a game action, containing expected and fatal errors."""
        try:
            await self._session_manager.handle_game_action(
                connection=connection,
                action=message.action,
                data=message.model_dump(exclude={"type", "action"}),
            )
        except (GameRuleError, ValueError, KeyError, TypeError) as e:
            logger.warning("action failed", connection_id=connection.connection_id, error=str(e))
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.ACTION_FAILED, message=str(e)).model_dump(),
            )
        except Exception:
            logger.exception("fatal error during game action", connection_id=connection.connection_id)
            await self._session_manager.close_game_on_error(connection)

    async def _handle_chat(self, connection: ConnectionProtocol, message: ChatMessage) -> None:
        """Chat goes to the room before the match and to the game during it."""
        if self._session_manager.is_in_room(connection.connection_id):
            await self._session_manager.broadcast_room_chat(connection=connection, text=message.text)
        else:
            await self._session_manager.broadcast_chat(connection=connection, text=message.text)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.leave_room(connection, notify_player=False)
        await self._session_manager.leave_game(connection, notify_player=False)
        self._session_manager.unregister_connection(connection)
