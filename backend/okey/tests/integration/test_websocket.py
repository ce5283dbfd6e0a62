"""Integration tests for the WebSocket transport.

These tests drive the Starlette app through the test client with MessagePack
frames, using the mock game service.
"""

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from okey.messaging.types import SessionErrorCode, SessionMessageType
from okey.server import websocket as ws_module
from okey.tests.helpers.websocket import create_room, join_room, recv_until, recv_ws, send_ws


class TestWebSocketIntegration:
    @pytest.fixture
    def client(self, app):
        with TestClient(app) as client:
            yield client

    def test_ping(self, client):
        with client.websocket_connect("/ws/room1") as ws:
            send_ws(ws, {"type": "ping"})

            assert recv_ws(ws) == {"type": SessionMessageType.PONG}

    def test_join_room(self, client):
        create_room(client, "room1")

        with client.websocket_connect("/ws/room1") as ws:
            joined = join_room(ws, "room1", "Alice")

        assert joined["type"] == SessionMessageType.ROOM_JOINED
        assert joined["seats_left"] == 3

    def test_join_missing_room(self, client):
        with client.websocket_connect("/ws/nowhere") as ws:
            reply = join_room(ws, "nowhere", "Alice")

        assert reply["code"] == SessionErrorCode.ROOM_NOT_FOUND

    def test_socket_cannot_join_another_room(self, client, session_manager):
        create_room(client, "room-a")
        create_room(client, "room-b")

        with client.websocket_connect("/ws/room-a") as ws:
            reply = join_room(ws, "room-b", "Alice")

        assert reply["code"] == SessionErrorCode.ROOM_MISMATCH
        assert session_manager.get_room("room-a").is_empty
        assert session_manager.get_room("room-b").is_empty

    def test_join_without_room_id_uses_path(self, client, session_manager):
        create_room(client, "room-a")

        with client.websocket_connect("/ws/room-a") as ws:
            send_ws(ws, {"type": "join_room", "player_name": "Alice"})
            joined = recv_ws(ws)
            assert session_manager.get_room("room-a").player_count == 1

        assert joined["type"] == SessionMessageType.ROOM_JOINED

    def test_four_players_start_match(self, client):
        create_room(client, "room1")
        names = ["Alice", "Bob", "Carol", "Dave"]

        with (
            client.websocket_connect("/ws/room1") as ws0,
            client.websocket_connect("/ws/room1") as ws1,
            client.websocket_connect("/ws/room1") as ws2,
            client.websocket_connect("/ws/room1") as ws3,
        ):
            sockets = [ws0, ws1, ws2, ws3]
            for ws, name in zip(sockets, names, strict=True):
                join_room(ws, "room1", name)

            for ws in sockets:
                messages = recv_until(ws, "match_started")
                assert SessionMessageType.GAME_STARTING in [m["type"] for m in messages]

            send_ws(ws1, {"type": "chat", "text": "gl hf"})
            for ws in sockets:
                chat = recv_until(ws, SessionMessageType.CHAT)[-1]
                assert chat == {"type": SessionMessageType.CHAT, "player_name": "Bob", "text": "gl hf"}

    def test_invalid_msgpack_keeps_connection(self, client):
        with client.websocket_connect("/ws/room1") as ws:
            ws.send_bytes(b"\xff\xff")
            error = recv_ws(ws)

            send_ws(ws, {"type": "ping"})
            pong = recv_ws(ws)

        assert error["code"] == SessionErrorCode.INVALID_MESSAGE
        assert pong["type"] == SessionMessageType.PONG

    def test_repeated_decode_errors_disconnect(self, client, monkeypatch):
        monkeypatch.setattr(ws_module, "_MAX_DECODE_ERRORS", 2)

        with client.websocket_connect("/ws/room1") as ws:
            ws.send_bytes(b"\xff")
            recv_ws(ws)
            ws.send_bytes(b"\xff")
            recv_ws(ws)

            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_bytes()

        assert exc_info.value.code == 4004

    def test_rate_limit(self, client, monkeypatch):
        monkeypatch.setattr(ws_module, "_RATE_LIMIT_RATE", 0.001)
        monkeypatch.setattr(ws_module, "_RATE_LIMIT_BURST", 3)

        with client.websocket_connect("/ws/room1") as ws:
            for _ in range(5):
                send_ws(ws, {"type": "ping"})
            replies = [recv_ws(ws) for _ in range(5)]

        assert [r["type"] for r in replies[:3]] == [SessionMessageType.PONG] * 3
        assert replies[3]["code"] == SessionErrorCode.RATE_LIMITED

    def test_invalid_room_id_rejected(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info, client.websocket_connect("/ws/bad$room"):
            pass

        assert exc_info.value.code == 4000

    def test_disconnect_leaves_room(self, client, session_manager):
        create_room(client, "room1")

        with client.websocket_connect("/ws/room1") as ws:
            join_room(ws, "room1", "Alice")
            assert session_manager.get_room("room1").player_count == 1

        assert session_manager.get_room("room1").is_empty
