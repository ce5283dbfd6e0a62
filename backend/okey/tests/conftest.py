from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from okey.logic.deck import DeckSetup, compute_okey
from okey.logic.enums import MatchPhase, TileColour
from okey.logic.settings import GameSettings
from okey.logic.state import MatchState, OkeyPlayer, TableLedger
from okey.logic.tiles import NUM_TILES, TileFace, make_tile_id
from okey.messaging.router import MessageRouter
from okey.server.app import create_app
from okey.server.settings import GameServerSettings
from okey.session.manager import SessionManager
from okey.tests.mocks import MockConnection, MockGameService

if TYPE_CHECKING:
    from collections.abc import Sequence

TEST_SEED = "ab" * 96
DEFAULT_OKEY = TileFace(colour=TileColour.RED, number=5)
DEFAULT_INDICATOR = make_tile_id(TileColour.RED, 4)

R = TileColour.RED
Y = TileColour.YELLOW
K = TileColour.BLACK
B = TileColour.BLUE


def t(colour: TileColour, number: int, copy: int = 0) -> int:
    """Shorthand for a numbered tile id."""
    return make_tile_id(colour, number, copy)


# ============================================================================
# Test State Builder Helpers
# ============================================================================


def create_player(
    seat: int = 0,
    name: str | None = None,
    *,
    hand: Sequence[int | None] | None = None,
    discards: Sequence[int] | None = None,
    has_opened: bool = False,
) -> OkeyPlayer:
    """Create an OkeyPlayer with sensible defaults for testing."""
    return OkeyPlayer(
        seat=seat,
        name=name if name is not None else f"Player{seat}",
        hand=tuple(hand) if hand is not None else (),
        discards=tuple(discards) if discards is not None else (),
        has_opened=has_opened,
    )


def create_match_state(
    *,
    players: Sequence[OkeyPlayer] | None = None,
    stock: Sequence[int] | None = None,
    okey: TileFace = DEFAULT_OKEY,
    indicator: int = DEFAULT_INDICATOR,
    current_seat: int = 0,
    draw_right: bool = False,
    has_drawn: bool = False,
    turn_count: int = 0,
    claimable_discard: int | None = None,
    phase: MatchPhase = MatchPhase.PLAYING,
    ledger: TableLedger | None = None,
    settings: GameSettings | None = None,
) -> MatchState:
    """Create a MatchState with sensible defaults for testing.

    Tiles are not conserved unless the caller arranges it; rule tests only
    look at the seats and piles they set up.
    """
    if players is None:
        players = tuple(create_player(seat=i) for i in range(4))
    return MatchState(
        players=tuple(players),
        stock=tuple(stock) if stock is not None else (),
        okey=okey,
        indicator=indicator,
        current_seat=current_seat,
        draw_right=draw_right,
        has_drawn=has_drawn,
        turn_count=turn_count,
        claimable_discard=claimable_discard,
        phase=phase,
        ledger=ledger if ledger is not None else TableLedger(),
        settings=settings if settings is not None else GameSettings(),
        seed=TEST_SEED,
    )


def create_stacked_deck(
    hands: Sequence[Sequence[int]],
    *,
    indicator: int = DEFAULT_INDICATOR,
    stock_top: Sequence[int] = (),
) -> DeckSetup:
    """Build a deck that deals the given hands.

    hands[0] must hold 15 tiles and the others 14 each. stock_top lists the
    tiles drawn first after the deal, in draw order. The remaining tiles
    fill the bottom of the stock in id order.
    """
    used = [tile for hand in hands for tile in hand] + list(stock_top)
    if len(set(used)) != len(used):
        raise ValueError("stacked deck repeats a tile")
    rest = [tile for tile in range(NUM_TILES) if tile not in set(used)]

    # dealing pops from the end: seat 0 first, then 1, 2, 3
    dealt: list[int] = []
    for hand in hands:
        dealt.extend(hand)
    top = list(reversed(dealt))
    stock = [*rest, *reversed(stock_top), *top]
    return DeckSetup(okey=compute_okey(indicator), indicator=indicator, stock=tuple(stock))


@pytest.fixture
def game_service():
    return MockGameService()


@pytest.fixture
def session_manager(game_service):
    return SessionManager(game_service)


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def server_settings():
    return GameServerSettings(max_rooms=3, cors_origins=["http://localhost:8712"])


@pytest.fixture
def app(server_settings, game_service, session_manager, message_router):
    return create_app(
        settings=server_settings,
        game_service=game_service,
        session_manager=session_manager,
        message_router=message_router,
    )
