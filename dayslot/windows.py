# dayslot/windows.py
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Tuple

from .model import TimeWindow

DEFAULT_WINDOWS: Tuple[TimeWindow, ...] = (
    TimeWindow.from_hours("dawn", 0, 6, priority=4, enabled=False),
    TimeWindow.from_hours("morning", 6, 12, priority=1),
    TimeWindow.from_hours("afternoon", 12, 18, priority=2),
    TimeWindow.from_hours("evening", 18, 24, priority=3),
)


class TimeWindowCatalog:
    """User-configured day windows, kept in insertion order."""

    def __init__(self, windows: Iterable[TimeWindow] = DEFAULT_WINDOWS) -> None:
        self._windows: List[TimeWindow] = list(windows)

    def __iter__(self):
        return iter(self._windows)

    def __len__(self) -> int:
        return len(self._windows)

    @property
    def windows(self) -> Tuple[TimeWindow, ...]:
        return tuple(self._windows)

    def enabled_by_priority(self) -> List[TimeWindow]:
        # sorted() is stable, so equal priorities keep catalog order.
        return sorted((w for w in self._windows if w.enabled), key=lambda w: w.priority)

    def set_enabled(self, period: str, enabled: bool) -> None:
        found = False
        for i, w in enumerate(self._windows):
            if w.period == period:
                self._windows[i] = replace(w, enabled=bool(enabled))
                found = True
        if not found:
            raise KeyError(f"unknown window period: {period}")


def as_catalog(windows) -> TimeWindowCatalog:
    if isinstance(windows, TimeWindowCatalog):
        return windows
    return TimeWindowCatalog(windows)
