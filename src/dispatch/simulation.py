from __future__ import annotations

import logging
import math
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Union

from .clock import Clock
from .direction import Direction, FloorCall, Fulfillment
from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)


@dataclass
class MetricsSnapshot:
    tick: int
    elapsed_units: float
    served_requests: int
    served_calls: int
    floors_travelled: int
    door_cycles: int
    average_wait: float
    wait_p95: float


class MetricsTracker:
    def __init__(self) -> None:
        self.wait_times: List[float] = []
        self.served_requests: int = 0
        self.served_calls: int = 0
        self.floors_travelled: int = 0
        self.door_cycles: int = 0

    def record_move(self) -> None:
        self.floors_travelled += 1

    def record_door_cycle(self) -> None:
        self.door_cycles += 1

    def record_request(self, wait: Optional[float]) -> None:
        self.served_requests += 1
        if wait is not None:
            self.wait_times.append(wait)

    def record_call(self, wait: Optional[float]) -> None:
        self.served_calls += 1
        if wait is not None:
            self.wait_times.append(wait)

    def _average(self, values: List[float]) -> float:
        if not values:
            return 0.0
        return sum(values) / len(values)

    def _percentile(self, values: List[float], percentile: float) -> float:
        if not values:
            return 0.0
        sorted_vals = sorted(values)
        k = (len(sorted_vals) - 1) * percentile
        f = math.floor(k)
        c = math.ceil(k)
        if f == c:
            return float(sorted_vals[int(k)])
        d0 = sorted_vals[int(f)] * (c - k)
        d1 = sorted_vals[int(c)] * (k - f)
        return float(d0 + d1)

    def snapshot(self, tick: int, elapsed_units: float) -> MetricsSnapshot:
        return MetricsSnapshot(
            tick=tick,
            elapsed_units=elapsed_units,
            served_requests=self.served_requests,
            served_calls=self.served_calls,
            floors_travelled=self.floors_travelled,
            door_cycles=self.door_cycles,
            average_wait=self._average(self.wait_times),
            wait_p95=self._percentile(self.wait_times, 0.95),
        )


class Simulation:
    """Tick driver around a dispatcher: closes doors after a dwell and keeps metrics.

    Submissions made through the simulation are timestamped with the
    dispatcher's clock so that wait times can be reported once served.
    """

    def __init__(self, dispatcher: Dispatcher, door_dwell_ticks: int = 1) -> None:
        self.dispatcher = dispatcher
        self.door_dwell_ticks = max(1, door_dwell_ticks)
        self.current_tick: int = 0
        self.metrics = MetricsTracker()
        self.event_hooks: Dict[str, List[Callable[[dict], None]]] = {}
        self._door_timer = 0
        self._request_times: Dict[int, float] = {}
        self._call_times: Dict[FloorCall, Deque[float]] = defaultdict(deque)

    @property
    def clock(self) -> Clock:
        return self.dispatcher.clock

    @property
    def idle(self) -> bool:
        return not self.dispatcher.has_pending and not self.dispatcher.doors_open

    def on_event(self, event: str, callback: Callable[[dict], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def submit_request(self, floor: int) -> bool:
        accepted = self.dispatcher.submit_request(floor)
        if accepted:
            self._request_times.setdefault(floor, self.clock.now)
            self._emit("request", {"floor": floor, "time": self.clock.now})
        return accepted

    def submit_call(self, floor: int, direction: Union[Direction, str]) -> bool:
        accepted = self.dispatcher.submit_call(floor, direction)
        if accepted:
            call = self.dispatcher.pending_calls[-1]
            self._call_times[call].append(self.clock.now)
            self._emit("call", {"floor": floor, "direction": call.direction.value, "time": self.clock.now})
        return accepted

    async def run(self, ticks: int) -> None:
        for _ in range(ticks):
            await self.step()

    async def run_until_idle(self, max_ticks: int = 10_000) -> int:
        """Step until nothing is pending and the doors are shut; returns ticks used."""
        start = self.current_tick
        while not self.idle and self.current_tick - start < max_ticks:
            await self.step()
        return self.current_tick - start

    async def step(self) -> None:
        if self.dispatcher.doors_open:
            self._door_timer -= 1
            if self._door_timer <= 0:
                await self.close_doors()
        else:
            await self.advance()

        self._emit("tick", {"tick": self.current_tick, "time": self.clock.now, **self.dispatcher.snapshot()})
        self.current_tick += 1

    async def advance(self) -> None:
        """One dispatcher transition with arrival bookkeeping, without counting a tick."""
        dispatcher = self.dispatcher
        if dispatcher.doors_open:
            return
        start_floor = dispatcher.current_floor
        await dispatcher.advance()
        if dispatcher.current_floor != start_floor:
            self.metrics.record_move()
            self._emit(
                "move",
                {"floor": dispatcher.current_floor, "direction": dispatcher.direction.value, "time": self.clock.now},
            )
        elif dispatcher.doors_open:
            self._door_timer = self.door_dwell_ticks
            self.metrics.record_door_cycle()
            self._record_arrival(dispatcher.last_fulfillment)
        elif not dispatcher.has_pending:
            self._emit("idle", {"floor": dispatcher.current_floor, "time": self.clock.now})

    async def open_doors(self) -> None:
        await self.dispatcher.open_doors()
        self._door_timer = self.door_dwell_ticks
        self.metrics.record_door_cycle()

    async def close_doors(self) -> None:
        await self.dispatcher.close_doors()
        self._emit("doors_closed", {"floor": self.dispatcher.current_floor, "time": self.clock.now})

    def metrics_snapshot(self) -> MetricsSnapshot:
        return self.metrics.snapshot(self.current_tick, self.clock.now)

    def _record_arrival(self, fulfillment: Optional[Fulfillment]) -> None:
        if fulfillment is None:
            return
        now = self.clock.now
        if fulfillment.request_cleared:
            submitted = self._request_times.pop(fulfillment.floor, None)
            self.metrics.record_request(None if submitted is None else now - submitted)
        for call in fulfillment.calls_cleared:
            queue = self._call_times.get(call)
            submitted = queue.popleft() if queue else None
            if queue is not None and not queue:
                del self._call_times[call]
            self.metrics.record_call(None if submitted is None else now - submitted)
        logger.info(
            "Served floor %d (request=%s, calls=%d) at t=%.1f",
            fulfillment.floor,
            fulfillment.request_cleared,
            len(fulfillment.calls_cleared),
            now,
        )
        self._emit(
            "arrival",
            {
                "floor": fulfillment.floor,
                "travelled": fulfillment.travelled.value,
                "request_cleared": fulfillment.request_cleared,
                "calls_cleared": [call.direction.value for call in fulfillment.calls_cleared],
                "time": now,
            },
        )

    def _emit(self, event: str, payload: dict) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)
