from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"

    @classmethod
    def parse(cls, value: Union["Direction", str, None]) -> Optional["Direction"]:
        """Return the matching member, or ``None`` for unrecognised values.

        A ``None`` input maps to ``Direction.NONE``.
        """
        if isinstance(value, Direction):
            return value
        if value is None:
            return cls.NONE
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class CabinState(str, Enum):
    IDLE = "idle"
    MOVING_UP = "moving_up"
    MOVING_DOWN = "moving_down"
    DOORS_OPEN = "doors_open"


@dataclass(frozen=True)
class FloorCall:
    """A landing call: the floor pressed and the travel direction wanted."""

    floor: int
    direction: Direction


@dataclass
class Fulfillment:
    """What a door opening cleared at ``floor``."""

    floor: int
    travelled: Direction
    request_cleared: bool = False
    calls_cleared: List[FloorCall] = field(default_factory=list)

    @property
    def served(self) -> bool:
        return self.request_cleared or bool(self.calls_cleared)
