import pytest

from app.settings import Settings
from game import GameSession


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(joker_count=2, joker_repetitions=10, default_time_limit=0, tick_interval=1.0)


@pytest.fixture
def session(settings, clock):
    return GameSession(settings, clock=clock)
