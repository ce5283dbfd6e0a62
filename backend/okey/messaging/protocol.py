"""Abstract connection protocol for MessagePack binary communication."""

from abc import ABC, abstractmethod
from typing import Any

from okey.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    A client connection, independent of the transport.

    Session and routing logic only talk to this interface, so they can be
    tested without real WebSockets.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection."""
        ...

    @property
    @abstractmethod
    def room_id(self) -> str:
        """Room ID from the WebSocket URL path (/ws/{room_id})."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        """Encode and send one message."""
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        """Receive and decode one message."""
        return decode(await self.receive_bytes())
