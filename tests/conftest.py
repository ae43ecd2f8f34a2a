import pytest

from dispatch import Dispatcher, VirtualClock


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def make_dispatcher(clock):
    def _make(num_floors: int = 10, initial_floor: int = 0) -> Dispatcher:
        return Dispatcher(num_floors, initial_floor, clock=clock)

    return _make


async def advance_until_open(dispatcher: Dispatcher, limit: int = 50) -> int:
    """Advance until the doors open; returns the number of advances used."""
    for count in range(1, limit + 1):
        await dispatcher.advance()
        if dispatcher.doors_open:
            return count
    raise AssertionError(f"doors never opened within {limit} advances")
