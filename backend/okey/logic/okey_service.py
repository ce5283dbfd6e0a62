"""
Okey game service: one MatchState per game, actions dispatched to handlers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from okey.logic.action_handlers import (
    ActionResult,
    handle_arrange,
    handle_commit,
    handle_discard,
    handle_draw,
    handle_evaluate,
    handle_finish,
)
from okey.logic.enums import GameAction, GameErrorCode, MatchPhase
from okey.logic.events import (
    ErrorEvent,
    GameEvent,
    HandDealtEvent,
    MatchStartedEvent,
    ServiceEvent,
    convert_events,
    seat_target,
)
from okey.logic.match import abort_match, end_on_stock_exhausted, get_player_view, init_match
from okey.logic.rng import generate_seed
from okey.logic.service import GameService
from okey.logic.types import (
    ArrangeActionData,
    CommitActionData,
    DiscardActionData,
    DrawActionData,
    EvaluateActionData,
    FinishActionData,
    GamePlayerInfo,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from okey.logic.deck import DeckSetup
    from okey.logic.settings import GameSettings
    from okey.logic.state import MatchState

logger = structlog.get_logger()

_ACTION_HANDLERS: dict[GameAction, tuple[type[BaseModel], Callable[..., ActionResult]]] = {
    GameAction.DRAW: (DrawActionData, handle_draw),
    GameAction.DISCARD: (DiscardActionData, handle_discard),
    GameAction.COMMIT: (CommitActionData, handle_commit),
    GameAction.FINISH: (FinishActionData, handle_finish),
    GameAction.ARRANGE: (ArrangeActionData, handle_arrange),
    GameAction.EVALUATE: (EvaluateActionData, handle_evaluate),
}


class OkeyGameService(GameService):
    """
    In-memory Okey service. Callers serialize actions per game.
    """

    def __init__(self) -> None:
        self._games: dict[str, MatchState] = {}

    async def start_game(
        self,
        game_id: str,
        player_names: list[str],
        *,
        seed: str | None = None,
        settings: GameSettings | None = None,
        deck: DeckSetup | None = None,
    ) -> list[ServiceEvent]:
        seed = seed or generate_seed()
        state = init_match(player_names, seed, settings, deck)
        self._games[game_id] = state
        logger.info("game started", game_id=game_id, players=player_names)

        events: list[GameEvent] = [
            MatchStartedEvent(
                game_id=game_id,
                players=[GamePlayerInfo(seat=p.seat, name=p.name) for p in state.players],
                first_seat=state.first_seat,
                indicator=state.indicator,
                okey=state.okey,
                stock_count=len(state.stock),
            )
        ]
        events.extend(
            HandDealtEvent(target=seat_target(p.seat), view=get_player_view(state, p.seat)) for p in state.players
        )
        return convert_events(events)

    async def handle_action(
        self,
        game_id: str,
        player_name: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        state = self._games.get(game_id)
        if state is None:
            logger.debug("action for unknown game", game_id=game_id, player_name=player_name)
            return self._error(GameErrorCode.GAME_ERROR, "game not found")

        seat = self.get_player_seat(game_id, player_name)
        if seat is None:
            logger.warning("action from player not in game", game_id=game_id, player_name=player_name)
            return self._error(GameErrorCode.GAME_ERROR, "player not in game")

        if state.phase != MatchPhase.PLAYING:
            return self._error(GameErrorCode.MATCH_NOT_IN_PROGRESS, "match is not in progress", seat=seat)

        entry = _ACTION_HANDLERS.get(action)
        if entry is None:
            logger.warning("unknown action", game_id=game_id, seat=seat, action=action)
            return self._error(GameErrorCode.UNKNOWN_ACTION, f"unknown action: {action}", seat=seat)

        data_model, handler = entry
        try:
            parsed = data_model.model_validate(data)
        except ValidationError as e:
            logger.warning("invalid action data", game_id=game_id, seat=seat, action=action, error=str(e))
            return self._error(GameErrorCode.VALIDATION_ERROR, f"invalid action data: {e}", seat=seat)

        logger.info("player action", game_id=game_id, seat=seat, action=action)
        result = handler(state, seat, parsed)
        if result.new_state is not None:
            self._games[game_id] = result.new_state

        events = convert_events(result.events)
        if result.stock_exhausted and state.settings.end_match_on_stock_exhausted:
            events.extend(self._end_match(game_id, end_on_stock_exhausted))
        return events

    async def abort_game(self, game_id: str) -> list[ServiceEvent]:
        state = self._games.get(game_id)
        if state is None or state.phase != MatchPhase.PLAYING:
            return []
        return self._end_match(game_id, abort_match)

    def _end_match(
        self,
        game_id: str,
        ender: Callable[[MatchState], tuple[MatchState, list[GameEvent]]],
    ) -> list[ServiceEvent]:
        new_state, events = ender(self._games[game_id])
        self._games[game_id] = new_state
        return convert_events(events)

    def get_player_seat(self, game_id: str, player_name: str) -> int | None:
        state = self._games.get(game_id)
        if state is None:
            return None
        for player in state.players:
            if player.name == player_name:
                return player.seat
        return None

    def get_game_seed(self, game_id: str) -> str | None:
        state = self._games.get(game_id)
        return state.seed if state is not None else None

    def get_game_state(self, game_id: str) -> MatchState | None:
        return self._games.get(game_id)

    def cleanup_game(self, game_id: str) -> None:
        self._games.pop(game_id, None)

    def _error(self, code: GameErrorCode, message: str, *, seat: int | None = None) -> list[ServiceEvent]:
        target = "all" if seat is None else seat_target(seat)
        return convert_events([ErrorEvent(code=code, message=message, target=target)])
