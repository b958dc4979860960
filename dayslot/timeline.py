# dayslot/timeline.py
from __future__ import annotations

import math
from dataclasses import dataclass

from .interval import DAY_MINUTES
from .util.timeparse import minute_to_hhmm

DEFAULT_SNAP_MIN = 10


@dataclass(frozen=True)
class TimelineMapper:
    """Affine map between day-minutes and a continuous position axis (e.g. pixels)."""

    units_per_hour: float = 100.0

    def __post_init__(self) -> None:
        if not self.units_per_hour > 0:
            raise ValueError(f"units_per_hour must be > 0; got {self.units_per_hour!r}")

    def to_position(self, minute: float) -> float:
        return (minute / 60.0) * self.units_per_hour

    def to_minute(self, position: float) -> float:
        return (position / self.units_per_hour) * 60.0

    def snap(self, minute: float, granularity: int = DEFAULT_SNAP_MIN) -> int:
        """Round to the nearest multiple of `granularity`, clamped to [0, 1439]."""
        if granularity <= 0:
            raise ValueError(f"granularity must be > 0; got {granularity!r}")
        snapped = int(math.floor(minute / granularity + 0.5)) * granularity
        return max(0, min(DAY_MINUTES - 1, snapped))

    def preview_label(self, minute: float) -> str:
        return minute_to_hhmm(max(0, min(DAY_MINUTES, int(round(minute)))))
