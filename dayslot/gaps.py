# dayslot/gaps.py
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional

from .interval import DAY_BOUND, complement, merge_sorted
from .model import Interval, ScheduledItem

CLICK_BLOCK_MIN = 60


def free_intervals(date: dt.date, items: Iterable[ScheduledItem]) -> List[Interval]:
    """Maximal free intervals of `date`, ascending and pairwise disjoint."""
    merged = merge_sorted(it.interval for it in items if it.date == date)
    return complement(merged, DAY_BOUND)


def gap_at(gaps: Iterable[Interval], minute: int) -> Optional[Interval]:
    for g in gaps:
        if g.start_min <= minute < g.end_min:
            return g
    return None


def block_for_click(
    date: dt.date,
    items: Iterable[ScheduledItem],
    minute: int,
    *,
    block_min: int = CLICK_BLOCK_MIN,
) -> Optional[Interval]:
    """Block to create when the user clicks an empty spot at `minute`.

    Hour-aligned `block_min` block inside the clicked gap when it fits,
    otherwise the whole gap. None when the click lands on an item.
    """
    gap = gap_at(free_intervals(date, items), int(minute))
    if gap is None:
        return None

    if gap.duration_min < block_min:
        block = gap
    else:
        start = (int(minute) // 60) * 60
        start = max(start, gap.start_min)
        if start + block_min > gap.end_min:
            start = gap.end_min - block_min
        block = Interval(start, start + block_min)

    if block.duration_min <= 0:
        return None
    return block
