"""Shared WebSocket test helpers for integration tests."""

from okey.messaging.encoder import decode, encode
from okey.messaging.types import ClientMessageType


def send_ws(ws, data: dict) -> None:
    """Send a MessagePack-encoded message over a test WebSocket."""
    ws.send_bytes(encode(data))


def recv_ws(ws) -> dict:
    """Receive and decode a MessagePack message from a test WebSocket."""
    return decode(ws.receive_bytes())


def recv_until(ws, message_type: str, limit: int = 20) -> list[dict]:
    """Receive messages until one of message_type arrives; return all of them."""
    messages = []
    for _ in range(limit):
        message = recv_ws(ws)
        messages.append(message)
        if message["type"] == message_type:
            return messages
    raise AssertionError(f"no {message_type} message within {limit} messages: {messages}")


def create_room(client, room_id: str, settings: dict | None = None) -> None:
    """Create a room via POST /rooms."""
    body: dict = {"room_id": room_id}
    if settings is not None:
        body["settings"] = settings
    response = client.post("/rooms", json=body)
    assert response.status_code == 201


def join_room(ws, room_id: str, player_name: str) -> dict:
    """Join a room and return the room_joined reply."""
    send_ws(ws, {"type": ClientMessageType.JOIN_ROOM, "room_id": room_id, "player_name": player_name})
    return recv_ws(ws)
