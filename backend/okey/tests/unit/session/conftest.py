import pytest

from okey.session.manager import SessionManager
from okey.tests.mocks import MockGameService


@pytest.fixture
def game_service():
    return MockGameService()


@pytest.fixture
def manager(game_service):
    return SessionManager(game_service)
