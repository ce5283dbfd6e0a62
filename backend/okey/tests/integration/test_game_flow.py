"""End-to-end match flow over WebSockets with the real game service."""

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from okey.logic.enums import DrawSource, GameAction, GameErrorCode, MatchEndReason
from okey.logic.events import EventType
from okey.logic.okey_service import OkeyGameService
from okey.messaging.types import ClientMessageType, SessionMessageType
from okey.server.app import create_app
from okey.server.settings import GameServerSettings
from okey.tests.helpers.websocket import create_room, join_room, recv_until, recv_ws, send_ws

PLAYER_NAMES = ["Alice", "Bob", "Carol", "Dave"]


def _action(action: GameAction, **fields) -> dict:
    return {"type": ClientMessageType.GAME_ACTION, "action": action, **fields}


class TestGameFlow:
    @pytest.fixture
    def client(self):
        settings = GameServerSettings(max_rooms=5, cors_origins=["http://localhost:8712"])
        app = create_app(settings=settings, game_service=OkeyGameService())
        with TestClient(app) as client:
            yield client

    def test_opening_turns(self, client):
        create_room(client, "room1")

        with (
            client.websocket_connect("/ws/room1") as ws0,
            client.websocket_connect("/ws/room1") as ws1,
            client.websocket_connect("/ws/room1") as ws2,
            client.websocket_connect("/ws/room1") as ws3,
        ):
            sockets = [ws0, ws1, ws2, ws3]
            for ws, name in zip(sockets, PLAYER_NAMES, strict=True):
                join_room(ws, "room1", name)

            views = [recv_until(ws, EventType.HAND_DEALT)[-1] for ws in sockets]
            for seat, view in enumerate(views):
                assert view["seat"] == seat
                assert view["stock_count"] == 49
            assert len([t for t in views[0]["hand"] if t is not None]) == 15
            assert len([t for t in views[1]["hand"] if t is not None]) == 14
            assert views[0]["can_discard"] is True

            tile_id = next(t for t in views[0]["hand"] if t is not None)
            send_ws(ws0, _action(GameAction.DISCARD, tile_id=tile_id))

            for ws in sockets:
                discard = recv_until(ws, EventType.DISCARD)[-1]
                assert discard == {"type": EventType.DISCARD, "seat": 0, "tile_id": tile_id}
                turn = recv_ws(ws)
                assert turn["type"] == EventType.TURN
                assert turn["current_seat"] == 1
                assert turn["turn_count"] == 1

            send_ws(ws2, _action(GameAction.DRAW))
            error = recv_ws(ws2)
            assert error["type"] == EventType.ERROR
            assert error["code"] == GameErrorCode.NOT_YOUR_TURN

            send_ws(ws1, _action(GameAction.DRAW, source=DrawSource.LEFT_DISCARD))
            drawn = recv_ws(ws1)
            assert drawn["type"] == EventType.DRAW
            assert drawn["tile_id"] == tile_id
            assert tile_id in drawn["hand"]

            for ws in sockets:
                drew = recv_until(ws, EventType.PLAYER_DREW)[-1]
                assert drew["seat"] == 1
                assert drew["source"] == DrawSource.LEFT_DISCARD
                assert drew["tile_id"] == tile_id
                assert drew["stock_count"] == 49

    def test_disconnect_aborts_match(self, client):
        create_room(client, "room1")

        with (
            client.websocket_connect("/ws/room1") as ws0,
            client.websocket_connect("/ws/room1") as ws1,
            client.websocket_connect("/ws/room1") as ws2,
        ):
            remaining = [ws0, ws1, ws2]
            for ws, name in zip(remaining, PLAYER_NAMES, strict=True):
                join_room(ws, "room1", name)

            with client.websocket_connect("/ws/room1") as ws3:
                join_room(ws3, "room1", "Dave")
                recv_until(ws3, EventType.HAND_DEALT)

            for ws in remaining:
                messages = recv_until(ws, EventType.MATCH_ENDED, limit=30)
                types = [m["type"] for m in messages]
                assert SessionMessageType.PLAYER_LEFT in types
                assert messages[-1]["result"]["reason"] == MatchEndReason.ABORTED

                with pytest.raises(WebSocketDisconnect) as exc_info:
                    recv_ws(ws)
                assert exc_info.value.code == 1000
