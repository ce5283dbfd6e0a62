from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from okey.logic.exceptions import UnsupportedSettingsError
from okey.logic.okey_service import OkeyGameService
from okey.logic.settings import validate_settings
from okey.messaging.router import MessageRouter
from okey.server.settings import GameServerSettings
from okey.server.types import CreateRoomRequest
from okey.server.websocket import websocket_endpoint
from okey.session.manager import SessionManager
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from okey.logic.service import GameService

_MAX_REQUEST_BODY_SIZE = 4096


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: GameServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "open_rooms": session_manager.room_count,
            "active_games": session_manager.game_count,
            "max_rooms": settings.max_rooms,
        },
    )


async def list_rooms(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    return JSONResponse([room.model_dump() for room in session_manager.get_rooms_info()])


async def create_room(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: GameServerSettings = request.app.state.settings

    try:
        raw_body = await request.body()
        if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
            return JSONResponse({"error": "Request body too large"}, status_code=413)
        room_request = CreateRoomRequest(**json.loads(raw_body))
        if room_request.settings is not None:
            validate_settings(room_request.settings)
    except UnsupportedSettingsError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except (ValueError, TypeError, json.JSONDecodeError, UnicodeDecodeError, ValidationError):  # fmt: skip
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    if session_manager.room_count + session_manager.game_count >= settings.max_rooms:
        return JSONResponse({"error": "Server at capacity"}, status_code=503)
    if session_manager.get_room(room_request.room_id) or session_manager.get_game(room_request.room_id):
        return JSONResponse({"error": "Room with this ID already exists"}, status_code=409)

    session_manager.create_room(room_request.room_id, room_request.settings)
    return JSONResponse({"room_id": room_request.room_id, "status": "open"}, status_code=201)


def create_app(
    settings: GameServerSettings | None = None,
    game_service: GameService | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()
    if game_service is None:
        game_service = OkeyGameService()
    if session_manager is None:
        session_manager = SessionManager(game_service)
    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/rooms", list_rooms, methods=["GET"]),
        Route("/rooms", create_room, methods=["POST"]),
        WebSocketRoute("/ws/{room_id}", ws_endpoint),
    ]

    app = Starlette(routes=routes)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("okey server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory (uvicorn okey.server.app:get_app --factory)."""
    settings = GameServerSettings()
    setup_logging(settings.log_dir)
    return create_app(settings=settings)
