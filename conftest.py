import pytest

from library_app.library import Library
from library_app.utils import days

START_TIME = 1_700_000_000


class FakeClock:
    """Frozen clock for tests; ``advance`` moves it forward by whole days."""

    def __init__(self, now: int = START_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, count: int) -> None:
        self.now += days(count)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    # Each test gets its own data directory
    return tmp_path / "data"


@pytest.fixture
def lib(data_dir, clock):
    return Library(str(data_dir), clock=clock)
