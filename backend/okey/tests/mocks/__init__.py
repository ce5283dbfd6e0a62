from okey.tests.mocks.connection import MockConnection
from okey.tests.mocks.game_service import MockGameService, MockResultEvent

__all__ = ["MockConnection", "MockGameService", "MockResultEvent"]
