from unittest.mock import AsyncMock

import pytest

from dispatch import Direction, DispatchTiming, FloorCall, RealTimeClock, VirtualClock
from dispatch.targeting import candidate_floors, nearest_target


class TestTargeting:
    def test_no_candidates(self):
        assert nearest_target([], 3) is None

    def test_closest_floor(self):
        assert nearest_target([9, 1, 4], 5) == 4

    def test_first_candidate_wins_ties(self):
        assert nearest_target([7, 3], 5) == 7
        assert nearest_target([3, 7], 5) == 3

    def test_current_floor_is_distance_zero(self):
        assert nearest_target([2, 6, 6], 6) == 6

    def test_candidate_order(self):
        calls = [FloorCall(8, Direction.DOWN), FloorCall(1, Direction.UP)]
        assert candidate_floors([5, 2], calls) == [5, 2, 8, 1]


class TestClocks:
    @pytest.mark.asyncio
    async def test_virtual_clock_accumulates(self):
        clock = VirtualClock()
        await clock.sleep(3)
        await clock.sleep(1)
        assert clock.now == 4

    @pytest.mark.asyncio
    async def test_virtual_clock_rejects_negative(self):
        with pytest.raises(ValueError):
            await VirtualClock().sleep(-1)

    @pytest.mark.asyncio
    async def test_real_time_clock_scales_delay(self, monkeypatch):
        fake_sleep = AsyncMock()
        monkeypatch.setattr("dispatch.clock.asyncio.sleep", fake_sleep)
        clock = RealTimeClock(seconds_per_unit=0.5)
        await clock.sleep(3)
        fake_sleep.assert_awaited_once_with(1.5)
        assert clock.now == 3

    def test_real_time_clock_rejects_negative_scale(self):
        with pytest.raises(ValueError):
            RealTimeClock(seconds_per_unit=-1)


class TestTiming:
    def test_defaults(self):
        timing = DispatchTiming()
        assert (timing.move_units, timing.door_open_units, timing.door_close_units) == (3.0, 1.0, 1.0)

    def test_from_mapping(self):
        assert DispatchTiming.from_mapping(None) == DispatchTiming()
        assert DispatchTiming.from_mapping({"move_units": 2}).move_units == 2.0

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="floor_units"):
            DispatchTiming.from_mapping({"floor_units": 2})

    def test_negative_duration(self):
        with pytest.raises(ValueError):
            DispatchTiming(move_units=-1)


class TestDirectionParsing:
    def test_known_values(self):
        assert Direction.parse("Up") is Direction.UP
        assert Direction.parse(Direction.DOWN) is Direction.DOWN

    def test_none_maps_to_no_direction(self):
        assert Direction.parse(None) is Direction.NONE

    def test_unknown_value(self):
        assert Direction.parse("sideways") is None
