import pytest

from helpers import FakeClock
from songquiz.persistence import MemoryGateway
from songquiz.state import state


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return MemoryGateway()


@pytest.fixture(autouse=True)
def reset_app_state():
    state.manager = None
    state.release_buzzer()
    yield
    state.manager = None
    state.release_buzzer()
