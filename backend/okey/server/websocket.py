"""
WebSocket transport: one socket per seat, bound to the room in its URL.

A client connects to /ws/{room_id} for a room created over HTTP and can only
ever join that room. Frames are checked for decodability and rate before
they reach the router.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from okey.messaging.encoder import DecodeError, decode
from okey.messaging.protocol import ConnectionProtocol
from okey.messaging.types import ErrorMessage, SessionErrorCode, is_valid_room_id
from okey.server.rate_limit import TokenBucket

if TYPE_CHECKING:
    from okey.messaging.router import MessageRouter

logger = structlog.get_logger()

# a seat sends a handful of frames per turn (draw, arrange, commit, discard)
_RATE_LIMIT_RATE = 10.0
_RATE_LIMIT_BURST = 20

# consecutive undecodable frames before the socket is dropped
_MAX_DECODE_ERRORS = 5

CLOSE_INVALID_ROOM_ID = 4000
CLOSE_TOO_MANY_DECODE_ERRORS = 4004


class WebSocketConnection(ConnectionProtocol):
    """A Starlette WebSocket bound to the room named in its path."""

    def __init__(self, websocket: WebSocket, room_id: str, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._room_id = room_id
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def room_id(self) -> str:
        return self._room_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            return await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect):
            await self._websocket.close(code=code, reason=reason)


class _FrameGate:
    """Per-socket admission of incoming frames.

    Undecodable frames count as strikes; a good frame resets the count.
    Decoded frames then spend a rate-limit token.
    """

    def __init__(self, connection: ConnectionProtocol) -> None:
        self._connection = connection
        self._bucket = TokenBucket(rate=_RATE_LIMIT_RATE, burst=_RATE_LIMIT_BURST)
        self._strikes = 0

    @property
    def exhausted(self) -> bool:
        return self._strikes >= _MAX_DECODE_ERRORS

    async def admit(self, raw: bytes) -> dict[str, Any] | None:
        """Decoded frame to route, or None after answering the client with an error."""
        try:
            data = decode(raw)
        except DecodeError as e:
            self._strikes += 1
            logger.warning("undecodable frame", error=str(e), strikes=self._strikes)
            await self._reject(SessionErrorCode.INVALID_MESSAGE, str(e))
            return None

        self._strikes = 0
        if not self._bucket.consume():
            logger.debug("frame rate limited")
            await self._reject(SessionErrorCode.RATE_LIMITED, "Too many messages")
            return None
        return data

    async def _reject(self, code: SessionErrorCode, message: str) -> None:
        await self._connection.send_message(ErrorMessage(code=code, message=message).model_dump())


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    room_id = websocket.path_params["room_id"]
    if not is_valid_room_id(room_id):
        await websocket.close(code=CLOSE_INVALID_ROOM_ID, reason="invalid_room_id")
        return

    await websocket.accept()
    connection = WebSocketConnection(websocket, room_id=room_id)
    structlog.contextvars.bind_contextvars(room_id=room_id, connection_id=connection.connection_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    gate = _FrameGate(connection)
    try:
        while True:
            data = await gate.admit(await connection.receive_bytes())
            if data is not None:
                await router.handle_message(connection, data)
            elif gate.exhausted:
                logger.info("too many undecodable frames, disconnecting")
                await connection.close(code=CLOSE_TOO_MANY_DECODE_ERRORS, reason="too_many_decode_errors")
                return
    except (WebSocketDisconnect, RuntimeError, ConnectionError):
        pass
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()
