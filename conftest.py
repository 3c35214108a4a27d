from datetime import date, timedelta

import pytest

from catalog.library import Library
from catalog.storage import JsonStore


class FakeClock:
    """Callable stand-in for date.today that tests can move forward."""

    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> None:
        self.today += timedelta(days=days)


@pytest.fixture
def clock():
    return FakeClock(date(2024, 3, 1))


@pytest.fixture
def store(tmp_path):
    # Each test gets its own data directory
    return JsonStore(tmp_path / "data")


@pytest.fixture
def lib(store, clock):
    return Library(store, clock=clock)
