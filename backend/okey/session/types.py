"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel


class RoomInfo(BaseModel):
    """Room summary for the lobby listing."""

    room_id: str
    player_count: int
    seats_left: int
    total_seats: int
    players: list[str]
