# dayslot/model.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Optional, Tuple, Union


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open day-relative minute range [start_min, end_min)."""

    start_min: int
    end_min: int

    @property
    def duration_min(self) -> int:
        return self.end_min - self.start_min

    def shifted(self, delta_min: int) -> "Interval":
        return Interval(self.start_min + delta_min, self.end_min + delta_min)


@dataclass(frozen=True)
class TimeWindow:
    period: str
    start_min: int
    end_min: int
    priority: int  # lower is searched first
    enabled: bool = True

    @classmethod
    def from_hours(cls, period: str, start_hour: int, end_hour: int, priority: int, enabled: bool = True) -> "TimeWindow":
        return cls(period=period, start_min=int(start_hour) * 60, end_min=int(end_hour) * 60,
                   priority=int(priority), enabled=bool(enabled))

    @property
    def length_min(self) -> int:
        return self.end_min - self.start_min


@dataclass(frozen=True)
class ScheduledItem:
    id: str
    date: dt.date
    interval: Interval
    tag: str = ""
    title: str = ""


@dataclass(frozen=True)
class TaskSpec:
    """One entry of a batch placement request."""

    id: str
    duration_min: int
    title: str = ""


@dataclass(frozen=True)
class PlacementRequest:
    date: dt.date
    duration_min: int
    allow_conflicts: bool = False
    allow_multi_day: bool = False


# Placement results (tagged by `kind`)


@dataclass(frozen=True)
class Placed:
    kind: ClassVar[str] = "placed"
    interval: Interval


@dataclass(frozen=True)
class Conflict:
    """Forced placement: the earliest candidate plus the items it overlaps."""

    kind: ClassVar[str] = "conflict"
    interval: Interval
    conflicting_items: Tuple[ScheduledItem, ...]


@dataclass(frozen=True)
class NeedsSplit:
    kind: ClassVar[str] = "needs_split"
    placements: Dict[dt.date, Interval]
    requested_min: int
    remaining_min: int

    @property
    def placed_min(self) -> int:
        return sum(iv.duration_min for iv in self.placements.values())

    @property
    def partial(self) -> bool:
        return self.remaining_min > 0


@dataclass(frozen=True)
class Unplaceable:
    kind: ClassVar[str] = "unplaceable"
    reason: str = ""


PlacementResult = Union[Placed, Conflict, NeedsSplit, Unplaceable]


@dataclass
class DragSession:
    """Transient; lives between drag-start and drag-end/cancel."""

    item_id: str
    original: Interval
    version: int
    proposed: Optional[Interval] = None
    delta_min: float = field(default=0.0)


__all__ = [
    "Interval",
    "TimeWindow",
    "ScheduledItem",
    "TaskSpec",
    "PlacementRequest",
    "Placed",
    "Conflict",
    "NeedsSplit",
    "Unplaceable",
    "PlacementResult",
    "DragSession",
]
