"""
Action handlers for Okey game actions.

Each handler runs one rule operation against the current state and returns
an ActionResult. Rule violations are caught here and become an ErrorEvent
for the acting seat; the state is then left as it was (new_state is None).
"""

from typing import NamedTuple

import structlog

from okey.logic.combinations import evaluate_hand
from okey.logic.events import ErrorEvent, GameEvent, HandEvaluatedEvent, StockExhaustedEvent, seat_target
from okey.logic.exceptions import GameRuleError, StockEmptyError
from okey.logic.ledger import commit_combinations
from okey.logic.match import finish_hand
from okey.logic.state import MatchState
from okey.logic.turn import arrange_hand, discard_tile, draw_tile
from okey.logic.types import (
    ArrangeActionData,
    CommitActionData,
    DiscardActionData,
    DrawActionData,
    EvaluateActionData,
    FinishActionData,
)

logger = structlog.get_logger()


class ActionResult(NamedTuple):
    """
    Events produced by an action and, when it was accepted, the new state.
    """

    events: list[GameEvent]
    new_state: MatchState | None = None
    stock_exhausted: bool = False


def rejected(seat: int, error: GameRuleError) -> ActionResult:
    logger.info("action rejected", seat=seat, code=error.code, reason=str(error))
    return ActionResult([ErrorEvent(code=error.code, message=str(error), target=seat_target(seat))])


def handle_draw(state: MatchState, seat: int, data: DrawActionData) -> ActionResult:
    """
    Handle a draw. An empty stock is also announced to the whole table.
    """
    try:
        new_state, events = draw_tile(state, seat, data.source)
    except StockEmptyError as e:
        error_result = rejected(seat, e)
        return ActionResult([*error_result.events, StockExhaustedEvent(seat=seat)], stock_exhausted=True)
    except GameRuleError as e:
        return rejected(seat, e)
    return ActionResult(events, new_state)


def handle_discard(state: MatchState, seat: int, data: DiscardActionData) -> ActionResult:
    try:
        new_state, events = discard_tile(state, seat, data.tile_id)
    except GameRuleError as e:
        return rejected(seat, e)
    return ActionResult(events, new_state)


def handle_commit(state: MatchState, seat: int, data: CommitActionData) -> ActionResult:
    try:
        new_state, events = commit_combinations(state, seat, data.windows, data.claimed_total)
    except GameRuleError as e:
        return rejected(seat, e)
    return ActionResult(events, new_state)


def handle_finish(state: MatchState, seat: int, data: FinishActionData) -> ActionResult:
    try:
        new_state, events = finish_hand(state, seat, data.tile_id)
    except GameRuleError as e:
        return rejected(seat, e)
    return ActionResult(events, new_state)


def handle_arrange(state: MatchState, seat: int, data: ArrangeActionData) -> ActionResult:
    try:
        new_state, events = arrange_hand(state, seat, data.slots)
    except GameRuleError as e:
        return rejected(seat, e)
    return ActionResult(events, new_state)


def handle_evaluate(state: MatchState, seat: int, data: EvaluateActionData) -> ActionResult:
    """
    Evaluate a rack without changing anything. Defaults to the seat's own rack.
    """
    slots = data.slots if data.slots is not None else list(state.players[seat].hand)
    evaluation = evaluate_hand(slots, state.okey)
    return ActionResult([HandEvaluatedEvent(target=seat_target(seat), evaluation=evaluation)])
