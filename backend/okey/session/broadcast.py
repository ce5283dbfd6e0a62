"""Send one message to a group of players."""

import contextlib
from typing import Any


async def broadcast_to_players(
    players: dict[str, Any],
    message: dict[str, Any],
    exclude_connection_id: str | None = None,
) -> None:
    """Send message to every player except the excluded connection.

    Iterates over a snapshot so a concurrent leave cannot break the loop.
    A connection that is already gone is skipped.
    """
    for player in list(players.values()):
        if player.connection_id != exclude_connection_id:
            with contextlib.suppress(RuntimeError, OSError):
                await player.connection.send_message(message)
