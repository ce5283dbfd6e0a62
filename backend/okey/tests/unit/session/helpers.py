from __future__ import annotations

from typing import TYPE_CHECKING

from okey.tests.mocks import MockConnection

if TYPE_CHECKING:
    from okey.session.manager import SessionManager

PLAYER_NAMES = ["Alice", "Bob", "Carol", "Dave"]


async def join_players(
    manager: SessionManager,
    room_id: str,
    player_names: list[str],
) -> list[MockConnection]:
    """Register one connection per name and join them to the room in order."""
    connections: list[MockConnection] = []
    for name in player_names:
        conn = MockConnection(room_id=room_id)
        manager.register_connection(conn)
        await manager.join_room(conn, room_id, name)
        connections.append(conn)
    return connections


async def create_started_game(manager: SessionManager, room_id: str = "room1") -> list[MockConnection]:
    """Create a room, fill it with four players and clear their message history.

    The last join starts the match.
    """
    manager.create_room(room_id)
    connections = await join_players(manager, room_id, PLAYER_NAMES)

    # clear message history for clean test assertions
    for conn in connections:
        conn._outbox.clear()
    return connections
