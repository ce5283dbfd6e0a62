import re
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from okey.logic.enums import DrawSource, GameAction
from okey.logic.settings import MAX_HAND_SLOTS
from okey.logic.tiles import NUM_TILES
from okey.session.room import RoomPlayerInfo

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F

_NAME_PATTERN = r"^[a-zA-Z0-9_-]+$"
MAX_ROOM_ID_LENGTH = 50

RoomIdField = Annotated[str, Field(min_length=1, max_length=MAX_ROOM_ID_LENGTH, pattern=_NAME_PATTERN)]
TileIdField = Annotated[int, Field(ge=0, lt=NUM_TILES)]


class ClientMessageType(StrEnum):
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    GAME_ACTION = "game_action"
    CHAT = "chat"
    PING = "ping"


class SessionMessageType(StrEnum):
    GAME_LEFT = "game_left"
    ROOM_JOINED = "room_joined"
    ROOM_LEFT = "room_left"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    GAME_STARTING = "game_starting"
    CHAT = "chat"
    ERROR = "session_error"
    PONG = "pong"


class SessionErrorCode(StrEnum):
    ALREADY_IN_GAME = "already_in_game"
    ALREADY_IN_ROOM = "already_in_room"
    ROOM_NOT_FOUND = "room_not_found"
    ROOM_FULL = "room_full"
    ROOM_TRANSITIONING = "room_transitioning"
    NAME_TAKEN = "name_taken"
    NOT_IN_ROOM = "not_in_room"
    NOT_IN_GAME = "not_in_game"
    GAME_NOT_STARTED = "game_not_started"
    INVALID_MESSAGE = "invalid_message"
    ACTION_FAILED = "action_failed"
    RATE_LIMITED = "rate_limited"
    ROOM_MISMATCH = "room_mismatch"


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    # the socket's /ws/{room_id} path decides the room; a differing value is refused
    room_id: RoomIdField | None = None
    player_name: str = Field(min_length=1, max_length=30, pattern=_NAME_PATTERN)


class LeaveRoomMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE_ROOM] = ClientMessageType.LEAVE_ROOM


class CommitWindowField(BaseModel):
    start: int = Field(ge=0, lt=MAX_HAND_SLOTS)
    end: int = Field(ge=0, lt=MAX_HAND_SLOTS)


class DrawMessage(BaseModel):
    type: Literal[ClientMessageType.GAME_ACTION] = ClientMessageType.GAME_ACTION
    action: Literal[GameAction.DRAW] = GameAction.DRAW
    source: DrawSource = DrawSource.STOCK


class DiscardMessage(BaseModel):
    type: Literal[ClientMessageType.GAME_ACTION] = ClientMessageType.GAME_ACTION
    action: Literal[GameAction.DISCARD] = GameAction.DISCARD
    tile_id: TileIdField


class CommitMessage(BaseModel):
    type: Literal[ClientMessageType.GAME_ACTION] = ClientMessageType.GAME_ACTION
    action: Literal[GameAction.COMMIT] = GameAction.COMMIT
    windows: list[CommitWindowField] = Field(min_length=1, max_length=MAX_HAND_SLOTS)
    claimed_total: int | None = None


class FinishMessage(BaseModel):
    type: Literal[ClientMessageType.GAME_ACTION] = ClientMessageType.GAME_ACTION
    action: Literal[GameAction.FINISH] = GameAction.FINISH
    tile_id: TileIdField


class ArrangeMessage(BaseModel):
    type: Literal[ClientMessageType.GAME_ACTION] = ClientMessageType.GAME_ACTION
    action: Literal[GameAction.ARRANGE] = GameAction.ARRANGE
    slots: list[TileIdField | None] = Field(max_length=MAX_HAND_SLOTS)


class EvaluateMessage(BaseModel):
    type: Literal[ClientMessageType.GAME_ACTION] = ClientMessageType.GAME_ACTION
    action: Literal[GameAction.EVALUATE] = GameAction.EVALUATE
    slots: list[TileIdField | None] | None = Field(default=None, max_length=MAX_HAND_SLOTS)


GameActionMessage = Annotated[
    DrawMessage | DiscardMessage | CommitMessage | FinishMessage | ArrangeMessage | EvaluateMessage,
    Field(discriminator="action"),
]


class ChatMessage(BaseModel):
    type: Literal[ClientMessageType.CHAT] = ClientMessageType.CHAT
    text: str = Field(min_length=1, max_length=1000)

    @field_validator("text")
    @classmethod
    def _validate_text(cls, v: str) -> str:
        if any((ord(c) < _SPACE_ORD and c not in ("\t", "\n", "\r")) or ord(c) == _DEL_ORD for c in v):
            raise ValueError("text must not contain control characters")
        return v


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = (
    JoinRoomMessage
    | LeaveRoomMessage
    | DrawMessage
    | DiscardMessage
    | CommitMessage
    | FinishMessage
    | ArrangeMessage
    | EvaluateMessage
    | ChatMessage
    | PingMessage
)


class GameLeftMessage(BaseModel):
    type: Literal[SessionMessageType.GAME_LEFT] = SessionMessageType.GAME_LEFT


class RoomJoinedMessage(BaseModel):
    type: Literal[SessionMessageType.ROOM_JOINED] = SessionMessageType.ROOM_JOINED
    room_id: str
    player_name: str
    players: list[RoomPlayerInfo]
    seats_left: int


class RoomLeftMessage(BaseModel):
    type: Literal[SessionMessageType.ROOM_LEFT] = SessionMessageType.ROOM_LEFT


class PlayerJoinedMessage(BaseModel):
    type: Literal[SessionMessageType.PLAYER_JOINED] = SessionMessageType.PLAYER_JOINED
    player_name: str


class PlayerLeftMessage(BaseModel):
    type: Literal[SessionMessageType.PLAYER_LEFT] = SessionMessageType.PLAYER_LEFT
    player_name: str


class GameStartingMessage(BaseModel):
    type: Literal[SessionMessageType.GAME_STARTING] = SessionMessageType.GAME_STARTING


class SessionChatMessage(BaseModel):
    type: Literal[SessionMessageType.CHAT] = SessionMessageType.CHAT
    player_name: str
    text: str


class ErrorMessage(BaseModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


_NonGameMessage = Annotated[
    JoinRoomMessage | LeaveRoomMessage | ChatMessage | PingMessage,
    Field(discriminator="type"),
]

_name_re = re.compile(_NAME_PATTERN)


def is_valid_room_id(room_id: str) -> bool:
    return len(room_id) <= MAX_ROOM_ID_LENGTH and _name_re.fullmatch(room_id) is not None


_non_game_adapter = TypeAdapter(_NonGameMessage)
_game_action_adapter = TypeAdapter(GameActionMessage)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage.

    Game actions are discriminated twice (type, then action), so they go
    through their own adapter.
    """
    if data.get("type") == ClientMessageType.GAME_ACTION:
        return _game_action_adapter.validate_python(data)
    return _non_game_adapter.validate_python(data)
