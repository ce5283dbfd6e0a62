"""
Table ledger: committing combinations from a rack to the table.

The server recomputes every window's score; a client-supplied total is
only compared and logged. A player's first commit must reach the opening
threshold. Later commits only need valid, non-overlapping groups.
"""

from collections.abc import Sequence

import structlog

from okey.logic.combinations import Combination, evaluate_window
from okey.logic.events import CombinationsCommittedEvent, GameEvent
from okey.logic.exceptions import InsufficientPointsError, InvalidCombinationError
from okey.logic.state import LedgerEntry, MatchState, TableLedger
from okey.logic.state_utils import clear_hand_slots, update_player
from okey.logic.turn import ensure_can_discard
from okey.logic.types import CommitWindow

logger = structlog.get_logger()


def append_entry(ledger: TableLedger, entry: LedgerEntry) -> TableLedger:
    return ledger.model_copy(update={"entries": (*ledger.entries, entry)})


def entries_for(ledger: TableLedger, seat: int) -> tuple[LedgerEntry, ...]:
    return tuple(entry for entry in ledger.entries if entry.seat == seat)


def seat_total(ledger: TableLedger, seat: int) -> int:
    return sum(entry.total for entry in entries_for(ledger, seat))


def committed_tile_count(ledger: TableLedger) -> int:
    return sum(entry.tile_count for entry in ledger.entries)


def validate_windows(
    hand: tuple[int | None, ...],
    windows: Sequence[CommitWindow],
    state: MatchState,
) -> list[Combination]:
    """
    Turn requested windows into scored combinations.

    Empty slots inside a window are skipped. Raises InvalidCombinationError
    for an empty request, a window outside the rack, a window that does not
    start and end on a tile or holds no valid group, and overlapping windows.
    """
    if not windows:
        raise InvalidCombinationError("no combinations to commit")

    combos: list[Combination] = []
    claimed: set[int] = set()
    for window in windows:
        if window.end >= len(hand) or window.start > window.end:
            raise InvalidCombinationError(f"window {window.start}-{window.end} is outside the rack")
        combo = evaluate_window(hand, window.start, window.end, state.okey)
        if combo is None:
            raise InvalidCombinationError(f"slots {window.start}-{window.end} are not a valid run or set")
        if not claimed.isdisjoint(combo.slots):
            raise InvalidCombinationError(f"window {window.start}-{window.end} overlaps another combination")
        claimed.update(combo.slots)
        combos.append(combo)
    return combos


def commit_combinations(
    state: MatchState,
    seat: int,
    windows: Sequence[CommitWindow],
    claimed_total: int | None = None,
) -> tuple[MatchState, list[GameEvent]]:
    """
    Move the tiles of the given rack windows onto the table.

    Only the current player in the discard phase may commit. On success the
    covered slots are emptied and a ledger entry is appended. On any
    rejection nothing changes.
    """
    ensure_can_discard(state, seat)
    player = state.players[seat]
    combos = validate_windows(player.hand, windows, state)
    total = sum(c.score for c in combos)

    if claimed_total is not None and claimed_total != total:
        logger.warning("claimed commit total differs", seat=seat, claimed_total=claimed_total, total=total)

    threshold = state.settings.opening_threshold
    if not player.has_opened and total < threshold:
        raise InsufficientPointsError(total, threshold)

    covered = {slot for combo in combos for slot in combo.slots}
    hand = clear_hand_slots(player.hand, covered)
    if all(t is None for t in hand):
        raise InvalidCombinationError("a tile must stay in hand for the discard")

    entry = LedgerEntry(seat=seat, combinations=tuple(combos), total=total, turn=state.turn_count)
    new_state = update_player(state, seat, hand=hand, has_opened=True)
    new_state = new_state.model_copy(update={"ledger": append_entry(state.ledger, entry)})

    logger.info("combinations committed", seat=seat, total=total, count=len(combos), opened=not player.has_opened)
    return new_state, [
        CombinationsCommittedEvent(
            seat=seat,
            combinations=list(combos),
            total=total,
            opened=not player.has_opened,
        )
    ]
