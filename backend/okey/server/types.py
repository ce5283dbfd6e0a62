from pydantic import BaseModel, ConfigDict

from okey.logic.settings import GameSettings
from okey.messaging.types import RoomIdField


class CreateRoomRequest(BaseModel):
    """Body of POST /rooms. Settings default to the standard 101 rules."""

    model_config = ConfigDict(extra="forbid")

    room_id: RoomIdField
    settings: GameSettings | None = None
