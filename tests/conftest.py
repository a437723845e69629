import pytest

from inkmap.config import EditorSettings
from inkmap.gestures import GestureStateMachine
from inkmap.scene import SceneGraph


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def settings():
    return EditorSettings()


@pytest.fixture
def scene(settings):
    return SceneGraph(settings)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def machine(scene, settings, clock):
    return GestureStateMachine(scene, settings, clock=clock)
