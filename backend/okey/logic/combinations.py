"""
Joker-aware combination detection and scoring for Okey 101.

A group is a run (same colour, consecutive numbers, no wrap from 13 to 1),
a set (3 or 4 tiles of one number in distinct colours) or a group made of
jokers only. Jokers fill any gap. All functions here are pure.

Hand evaluation reads the occupied slots in rack order, so empty slots
left by discards and commits never split a group. Every contiguous window
of that tile sequence is scored, the valid ones are ordered by score then
length, and the ones that do not share a slot are kept greedily. The greedy cover is the game's observable
behaviour: a different partition with a higher total is not searched for.
"""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from okey.logic.enums import CombinationKind
from okey.logic.tiles import MAX_NUMBER, MIN_NUMBER, TileFace, is_joker, tile_colour, tile_kind, tile_number

MIN_GROUP_SIZE = 3
MAX_SET_SIZE = 4
MAX_GROUP_SIZE = MAX_NUMBER  # a run can span at most 1..13
JOKER_FALLBACK_VALUE = 7  # joker group value when no okey is known


class Combination(BaseModel):
    """
    A valid group whose tiles lie in rack slots start..end (inclusive).

    Empty slots inside the range are skipped; slot_indexes lists the slots
    actually holding the group's tiles.
    """

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    kind: CombinationKind
    score: int
    tile_ids: tuple[int, ...]
    slot_indexes: tuple[int, ...]

    @property
    def length(self) -> int:
        return len(self.tile_ids)

    @property
    def slots(self) -> tuple[int, ...]:
        return self.slot_indexes


class HandEvaluation(BaseModel):
    """Greedy combination cover of a rack."""

    model_config = ConfigDict(frozen=True)

    combinations: tuple[Combination, ...] = ()
    total_score: int = 0

    @property
    def covered_slots(self) -> frozenset[int]:
        return frozenset(slot for combo in self.combinations for slot in combo.slots)


def _numbered(tiles: Sequence[int]) -> list[int]:
    return [t for t in tiles if not is_joker(t)]


def has_duplicate_tiles(tiles: Sequence[int]) -> bool:
    """True if two non-joker tiles share colour and number."""
    kinds = [tile_kind(t) for t in _numbered(tiles)]
    return len(kinds) != len(set(kinds))


def is_all_jokers(tiles: Sequence[int]) -> bool:
    return len(tiles) >= MIN_GROUP_SIZE and all(is_joker(t) for t in tiles)


def find_run_window(tiles: Sequence[int]) -> range | None:
    """
    Number range a run occupies, or None if tiles do not form a run.

    Candidate starts are tried from the lowest; the first window holding
    every non-joker number wins, which fixes how jokers are valued.
    """
    size = len(tiles)
    if size < MIN_GROUP_SIZE or size > MAX_GROUP_SIZE:
        return None
    numbered = _numbered(tiles)
    if not numbered or has_duplicate_tiles(tiles):
        return None
    if len({tile_colour(t) for t in numbered}) != 1:
        return None

    nums = sorted(tile_number(t) for t in numbered)
    jokers = size - len(numbered)
    lowest_start = max(MIN_NUMBER, nums[0] - jokers)
    highest_start = min(MAX_NUMBER - size + 1, nums[-1])
    for start in range(lowest_start, highest_start + 1):
        window = range(start, start + size)
        if all(n in window for n in nums):
            return window
    return None


def is_run(tiles: Sequence[int]) -> bool:
    return find_run_window(tiles) is not None


def is_set(tiles: Sequence[int]) -> bool:
    if not MIN_GROUP_SIZE <= len(tiles) <= MAX_SET_SIZE:
        return False
    numbered = _numbered(tiles)
    if not numbered or has_duplicate_tiles(tiles):
        return False
    # distinct colours follow from no duplicates and a shared number
    return len({tile_number(t) for t in numbered}) == 1


def classify_group(tiles: Sequence[int]) -> CombinationKind | None:
    """Kind of a valid group, None when invalid. Run is checked before set."""
    if is_all_jokers(tiles) or is_run(tiles):
        return CombinationKind.RUN
    if is_set(tiles):
        return CombinationKind.SET
    return None


def is_valid_group(tiles: Sequence[int]) -> bool:
    return classify_group(tiles) is not None


def score_group(tiles: Sequence[int], okey: TileFace | None) -> int:
    """
    Point value of a group; 0 when the group is invalid.

    All jokers: okey number per tile. Run: sum of its number window.
    Set: number times size.
    """
    if is_all_jokers(tiles):
        value = okey.number if okey is not None else JOKER_FALLBACK_VALUE
        return value * len(tiles)
    window = find_run_window(tiles)
    if window is not None:
        return sum(window)
    if is_set(tiles):
        return tile_number(_numbered(tiles)[0]) * len(tiles)
    return 0


def _occupied(hand: Sequence[int | None], start: int = 0, end: int | None = None) -> list[tuple[int, int]]:
    """(slot, tile) pairs of the occupied slots in start..end, in rack order."""
    last = len(hand) - 1 if end is None else end
    return [(slot, tile) for slot in range(start, last + 1) if (tile := hand[slot]) is not None]


def _combination(run: Sequence[tuple[int, int]], okey: TileFace | None) -> Combination | None:
    tiles = tuple(tile for _, tile in run)
    kind = classify_group(tiles)
    if kind is None:
        return None
    return Combination(
        start=run[0][0],
        end=run[-1][0],
        kind=kind,
        score=score_group(tiles, okey),
        tile_ids=tiles,
        slot_indexes=tuple(slot for slot, _ in run),
    )


def evaluate_window(
    hand: Sequence[int | None],
    start: int,
    end: int,
    okey: TileFace | None,
) -> Combination | None:
    """
    Combination formed by the tiles in slots start..end, or None if invalid.

    Empty slots inside the window are skipped, but the window has to start
    and end on a tile so each group has exactly one name.
    """
    if start < 0 or end >= len(hand) or start > end:
        return None
    if hand[start] is None or hand[end] is None:
        return None
    run = _occupied(hand, start, end)
    if len(run) < MIN_GROUP_SIZE:
        return None
    return _combination(run, okey)


def find_candidate_windows(hand: Sequence[int | None], okey: TileFace | None) -> list[Combination]:
    """
    Every valid contiguous window of the rack's tile sequence, in (start, length) order.
    """
    occupied = _occupied(hand)
    candidates: list[Combination] = []
    for first in range(len(occupied)):
        last_end = min(len(occupied), first + MAX_GROUP_SIZE)
        for end in range(first + MIN_GROUP_SIZE, last_end + 1):
            combo = _combination(occupied[first:end], okey)
            if combo is not None:
                candidates.append(combo)
    return candidates


def select_non_overlapping(candidates: Sequence[Combination]) -> list[Combination]:
    """
    Greedy cover: best score first, longer first on ties, then discovery order.
    """
    ordered = sorted(candidates, key=lambda c: (-c.score, -c.length))
    claimed: set[int] = set()
    chosen: list[Combination] = []
    for combo in ordered:
        if claimed.isdisjoint(combo.slots):
            chosen.append(combo)
            claimed.update(combo.slots)
    return chosen


def find_all_valid_combinations(hand: Sequence[int | None], okey: TileFace | None) -> list[Combination]:
    return select_non_overlapping(find_candidate_windows(hand, okey))


def evaluate_hand(hand: Sequence[int | None], okey: TileFace | None) -> HandEvaluation:
    """Combinations the greedy cover finds in a rack, and their total."""
    combos = find_all_valid_combinations(hand, okey)
    return HandEvaluation(combinations=tuple(combos), total_score=sum(c.score for c in combos))
