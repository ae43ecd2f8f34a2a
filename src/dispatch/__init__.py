"""Single-cabin dispatch primitives."""

from .clock import Clock, RealTimeClock, VirtualClock
from .config import DispatchTiming
from .direction import CabinState, Direction, FloorCall, Fulfillment
from .dispatcher import Dispatcher
from .simulation import MetricsSnapshot, MetricsTracker, Simulation

__all__ = [
    "CabinState",
    "Clock",
    "Direction",
    "Dispatcher",
    "DispatchTiming",
    "FloorCall",
    "Fulfillment",
    "MetricsSnapshot",
    "MetricsTracker",
    "RealTimeClock",
    "Simulation",
    "VirtualClock",
]
