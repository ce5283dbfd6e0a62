from okey.logic.settings import GameSettings
from okey.messaging.types import SessionErrorCode, SessionMessageType
from okey.tests.mocks import MockConnection
from okey.tests.unit.session.helpers import PLAYER_NAMES, join_players


class TestCreateRoom:
    def test_create_room(self, manager):
        room = manager.create_room("room1")

        assert manager.get_room("room1") is room
        assert manager.room_count == 1
        assert room.seats_left == 4

    def test_room_keeps_settings(self, manager):
        room = manager.create_room("room1", GameSettings(opening_threshold=81))

        assert room.settings.opening_threshold == 81

    def test_rooms_info(self, manager):
        manager.create_room("room1")

        info = manager.get_rooms_info()

        assert len(info) == 1
        assert info[0].room_id == "room1"
        assert info[0].total_seats == 4
        assert info[0].players == []


class TestJoinRoom:
    async def test_join_sends_room_state(self, manager):
        manager.create_room("room1")

        [conn] = await join_players(manager, "room1", ["Alice"])

        [joined] = conn.messages_of_type(SessionMessageType.ROOM_JOINED)
        assert joined["room_id"] == "room1"
        assert joined["player_name"] == "Alice"
        assert joined["players"] == [{"name": "Alice", "seat": 0}]
        assert joined["seats_left"] == 3

    async def test_others_are_notified(self, manager):
        manager.create_room("room1")

        alice, bob = await join_players(manager, "room1", ["Alice", "Bob"])

        assert alice.messages_of_type(SessionMessageType.PLAYER_JOINED) == [
            {"type": SessionMessageType.PLAYER_JOINED, "player_name": "Bob"},
        ]
        assert bob.messages_of_type(SessionMessageType.PLAYER_JOINED) == []

    async def test_seats_follow_join_order(self, manager):
        manager.create_room("room1")

        connections = await join_players(manager, "room1", ["Alice", "Bob", "Carol"])

        [joined] = connections[2].messages_of_type(SessionMessageType.ROOM_JOINED)
        assert joined["players"] == [
            {"name": "Alice", "seat": 0},
            {"name": "Bob", "seat": 1},
            {"name": "Carol", "seat": 2},
        ]

    async def test_unknown_room(self, manager):
        [conn] = await join_players(manager, "missing", ["Alice"])

        [error] = conn.messages_of_type(SessionMessageType.ERROR)
        assert error["code"] == SessionErrorCode.ROOM_NOT_FOUND

    async def test_name_taken(self, manager):
        manager.create_room("room1")

        _, second = await join_players(manager, "room1", ["Alice", "Alice"])

        [error] = second.messages_of_type(SessionMessageType.ERROR)
        assert error["code"] == SessionErrorCode.NAME_TAKEN
        assert manager.get_room("room1").player_count == 1

    async def test_already_in_room(self, manager):
        manager.create_room("room1")
        manager.create_room("room2")
        [conn] = await join_players(manager, "room1", ["Alice"])

        await manager.join_room(conn, "room2", "Alice")

        [error] = conn.messages_of_type(SessionMessageType.ERROR)
        assert error["code"] == SessionErrorCode.ALREADY_IN_ROOM

    async def test_full_room_starts_match(self, manager, game_service):
        manager.create_room("room1")

        connections = await join_players(manager, "room1", PLAYER_NAMES)

        assert manager.get_room("room1") is None
        assert manager.room_count == 0
        assert manager.game_count == 1
        for conn in connections:
            types = [m["type"] for m in conn.sent_messages]
            assert SessionMessageType.GAME_STARTING in types
            assert "match_started" in types
        assert [game_service.get_player_seat("room1", name) for name in PLAYER_NAMES] == [0, 1, 2, 3]

    async def test_late_joiner_finds_no_room(self, manager):
        manager.create_room("room1")
        await join_players(manager, "room1", PLAYER_NAMES)

        [late] = await join_players(manager, "room1", ["Eve"])

        [error] = late.messages_of_type(SessionMessageType.ERROR)
        assert error["code"] == SessionErrorCode.ROOM_NOT_FOUND


class TestLeaveRoom:
    async def test_leave_room(self, manager):
        manager.create_room("room1")
        alice, bob = await join_players(manager, "room1", ["Alice", "Bob"])

        await manager.leave_room(bob)

        assert bob.messages_of_type(SessionMessageType.ROOM_LEFT) == [{"type": SessionMessageType.ROOM_LEFT}]
        assert alice.messages_of_type(SessionMessageType.PLAYER_LEFT) == [
            {"type": SessionMessageType.PLAYER_LEFT, "player_name": "Bob"},
        ]
        assert manager.get_room("room1").player_names == ["Alice"]
        assert not manager.is_in_room(bob.connection_id)

    async def test_empty_room_stays_open(self, manager):
        manager.create_room("room1")
        [alice] = await join_players(manager, "room1", ["Alice"])

        await manager.leave_room(alice)

        assert manager.get_room("room1") is not None
        assert manager.get_room("room1").is_empty

    async def test_leave_without_room_is_noop(self, manager):
        conn = MockConnection()

        await manager.leave_room(conn)

        assert conn.sent_messages == []


class TestRoomChat:
    async def test_chat_reaches_room(self, manager):
        manager.create_room("room1")
        alice, bob = await join_players(manager, "room1", ["Alice", "Bob"])

        await manager.broadcast_room_chat(alice, "hello")

        expected = {"type": SessionMessageType.CHAT, "player_name": "Alice", "text": "hello"}
        assert alice.messages_of_type(SessionMessageType.CHAT) == [expected]
        assert bob.messages_of_type(SessionMessageType.CHAT) == [expected]

    async def test_chat_outside_room(self, manager):
        conn = MockConnection()

        await manager.broadcast_room_chat(conn, "hello")

        [error] = conn.messages_of_type(SessionMessageType.ERROR)
        assert error["code"] == SessionErrorCode.NOT_IN_ROOM
