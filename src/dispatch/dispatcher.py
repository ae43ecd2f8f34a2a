from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple, Union

from .clock import Clock, RealTimeClock
from .config import DispatchTiming
from .direction import CabinState, Direction, FloorCall, Fulfillment
from .targeting import candidate_floors, nearest_target

logger = logging.getLogger(__name__)


class Dispatcher:
    """Control loop for a single cabin serving requests and landing calls.

    Each ``advance()`` performs at most one transition: one floor of travel,
    or opening the doors at the chosen target. Doors stay open until
    ``close_doors()`` is awaited; ``advance()`` does nothing meanwhile.

    The dispatcher is not safe for concurrent use. Callers must serialise
    every mutating coroutine, e.g. behind one ``asyncio.Lock``.
    """

    def __init__(
        self,
        num_floors: int,
        initial_floor: int = 0,
        clock: Optional[Clock] = None,
        timing: Optional[DispatchTiming] = None,
    ) -> None:
        if num_floors < 1:
            raise ValueError(f"num_floors must be at least 1, got {num_floors}")
        if not 0 <= initial_floor < num_floors:
            raise ValueError(
                f"initial_floor {initial_floor} outside building range [0, {num_floors})"
            )
        self._num_floors = num_floors
        self._current_floor = initial_floor
        self._doors_open = False
        self._direction = Direction.NONE
        self._state = CabinState.IDLE
        # dict keys keep insertion order, which decides distance ties
        self._requests: Dict[int, None] = {}
        self._calls: List[FloorCall] = []
        self.clock: Clock = clock if clock is not None else RealTimeClock()
        self.timing = timing or DispatchTiming()
        self.last_fulfillment: Optional[Fulfillment] = None

    @property
    def num_floors(self) -> int:
        return self._num_floors

    @property
    def current_floor(self) -> int:
        return self._current_floor

    @property
    def doors_open(self) -> bool:
        return self._doors_open

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def state(self) -> CabinState:
        return self._state

    @property
    def pending_requests(self) -> Tuple[int, ...]:
        return tuple(self._requests)

    @property
    def pending_calls(self) -> Tuple[FloorCall, ...]:
        return tuple(self._calls)

    @property
    def has_pending(self) -> bool:
        return bool(self._requests or self._calls)

    def _in_range(self, floor: object) -> bool:
        return isinstance(floor, int) and not isinstance(floor, bool) and 0 <= floor < self._num_floors

    def submit_request(self, floor: int) -> bool:
        if not self._in_range(floor):
            logger.debug("Ignoring request for floor %r (building has %d floors)", floor, self._num_floors)
            return False
        self._requests[floor] = None
        return True

    def submit_call(self, floor: int, direction: Union[Direction, str]) -> bool:
        parsed = Direction.parse(direction)
        if not self._in_range(floor) or parsed not in (Direction.UP, Direction.DOWN):
            logger.debug("Ignoring call %r/%r", floor, direction)
            return False
        self._calls.append(FloorCall(floor, parsed))
        return True

    async def open_doors(self) -> None:
        await self.clock.sleep(self.timing.door_open_units)
        self._doors_open = True
        self._state = CabinState.DOORS_OPEN
        logger.info("Doors open at floor %d", self._current_floor)

    async def close_doors(self) -> None:
        await self.clock.sleep(self.timing.door_close_units)
        self._doors_open = False
        self._state = CabinState.IDLE
        logger.info("Doors closed at floor %d", self._current_floor)

    async def advance(self) -> None:
        if self._doors_open:
            return

        target = nearest_target(candidate_floors(self._requests, self._calls), self._current_floor)
        if target is None:
            self._direction = Direction.NONE
            return

        if target > self._current_floor:
            await self._move(Direction.UP)
        elif target < self._current_floor:
            await self._move(Direction.DOWN)
        else:
            await self.open_doors()
            self.last_fulfillment = self._fulfill()
            self._direction = Direction.NONE

    async def _move(self, direction: Direction) -> None:
        self._direction = direction
        self._state = CabinState.MOVING_UP if direction is Direction.UP else CabinState.MOVING_DOWN
        await self.clock.sleep(self.timing.move_units)
        self._current_floor += 1 if direction is Direction.UP else -1
        self._state = CabinState.IDLE
        logger.debug("Cabin moved %s to floor %d", direction.value, self._current_floor)

    def _fulfill(self) -> Fulfillment:
        floor = self._current_floor
        travelled = self._direction
        result = Fulfillment(floor=floor, travelled=travelled)
        if floor in self._requests:
            del self._requests[floor]
            result.request_cleared = True

        remaining: List[FloorCall] = []
        for call in self._calls:
            # with no established direction both call directions are served
            if call.floor == floor and (travelled is Direction.NONE or call.direction is travelled):
                result.calls_cleared.append(call)
            else:
                remaining.append(call)
        self._calls = remaining
        return result

    def snapshot(self) -> dict:
        return {
            "num_floors": self._num_floors,
            "current_floor": self._current_floor,
            "doors_open": self._doors_open,
            "direction": self._direction.value,
            "state": self._state.value,
            "requests": list(self._requests),
            "calls": [{"floor": call.floor, "direction": call.direction.value} for call in self._calls],
        }
