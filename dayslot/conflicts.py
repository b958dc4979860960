# dayslot/conflicts.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from .interval import overlaps
from .model import Interval, ScheduledItem

DEFAULT_TRANSITION_MIN = 30
DEFAULT_PREP_MIN = 15


@dataclass(frozen=True)
class OverlapSegment:
    start_min: int
    end_min: int
    item_ids: Tuple[str, ...]
    key: str


@dataclass(frozen=True)
class TransitionWarning:
    before_id: str
    after_id: str
    gap_min: int
    kind: str  # "tight" | "short"


def check_conflicts(interval: Interval, items: Iterable[ScheduledItem]) -> List[ScheduledItem]:
    """Items whose interval overlaps `interval` (same-day lists expected)."""
    return [it for it in items if overlaps(interval, it.interval)]


def overlap_segments(items: Iterable[ScheduledItem]) -> List[OverlapSegment]:
    """Sweep line over one day's items: maximal segments covered by two or more items."""
    pts: List[Tuple[int, int, str]] = []
    for it in items:
        if it.interval.end_min <= it.interval.start_min:
            continue
        pts.append((it.interval.start_min, +1, it.id))
        pts.append((it.interval.end_min, -1, it.id))
    # Ends before starts at the same minute: touching items do not overlap.
    pts.sort(key=lambda x: (x[0], x[1]))

    segments: List[OverlapSegment] = []
    active: Set[str] = set()
    prev_t: Optional[int] = None

    for t, kind, item_id in pts:
        if prev_t is not None and t > prev_t and len(active) >= 2:
            ids = tuple(sorted(active))
            key = ",".join(ids)
            last = segments[-1] if segments else None
            if last and last.key == key and last.end_min == prev_t:
                segments[-1] = OverlapSegment(last.start_min, t, last.item_ids, last.key)
            else:
                segments.append(OverlapSegment(prev_t, t, ids, key))

        if kind == +1:
            active.add(item_id)
        else:
            active.discard(item_id)
        prev_t = t

    return segments


def transition_warnings(
    items: Iterable[ScheduledItem],
    *,
    transition_min: int = DEFAULT_TRANSITION_MIN,
    prep_min: int = DEFAULT_PREP_MIN,
) -> List[TransitionWarning]:
    """Neighbouring items (by start) separated by less than the recommended break.

    Overlapping neighbours are left to overlap_segments.
    """
    ordered = sorted(items, key=lambda it: (it.interval.start_min, it.interval.end_min, it.id))
    out: List[TransitionWarning] = []
    for a, b in zip(ordered, ordered[1:]):
        gap = b.interval.start_min - a.interval.end_min
        if gap <= 0:
            continue
        if gap < prep_min:
            out.append(TransitionWarning(a.id, b.id, gap, "tight"))
        elif gap < transition_min:
            out.append(TransitionWarning(a.id, b.id, gap, "short"))
    return out
