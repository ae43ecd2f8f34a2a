from __future__ import annotations

import asyncio
from typing import Protocol


class Clock(Protocol):
    """Delay provider for moves and door actions, measured in time units."""

    @property
    def now(self) -> float:
        ...

    async def sleep(self, units: float) -> None:
        ...


class RealTimeClock:
    """Suspends on the event loop for ``units * seconds_per_unit`` seconds."""

    def __init__(self, seconds_per_unit: float = 1.0) -> None:
        if seconds_per_unit < 0:
            raise ValueError("seconds_per_unit must be non-negative")
        self.seconds_per_unit = seconds_per_unit
        self._now = 0.0

    @property
    def now(self) -> float:
        return self._now

    async def sleep(self, units: float) -> None:
        if units < 0:
            raise ValueError(f"Cannot sleep for a negative duration ({units})")
        await asyncio.sleep(units * self.seconds_per_unit)
        self._now += units


class VirtualClock:
    """Advances simulated time instantly; used by tests and offline scenarios."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    @property
    def now(self) -> float:
        return self._now

    async def sleep(self, units: float) -> None:
        if units < 0:
            raise ValueError(f"Cannot sleep for a negative duration ({units})")
        self._now += units
