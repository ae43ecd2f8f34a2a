from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Mapping, Optional


@dataclass(frozen=True)
class DispatchTiming:
    """Simulated durations, in clock units, of each cabin action."""

    move_units: float = 3.0
    door_open_units: float = 1.0
    door_close_units: float = 1.0

    def __post_init__(self) -> None:
        for item in fields(self):
            if getattr(self, item.name) < 0:
                raise ValueError(f"{item.name} must be non-negative")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "DispatchTiming":
        if not data:
            return cls()
        known = {item.name for item in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown timing keys: {', '.join(sorted(unknown))}")
        return cls(**{key: float(value) for key, value in data.items()})
