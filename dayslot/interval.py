# dayslot/interval.py
from __future__ import annotations

from typing import Iterable, List

from .model import Interval

DAY_MINUTES = 1440
DAY_BOUND = Interval(0, DAY_MINUTES)


class IntervalError(ValueError):
    """Raised for a malformed interval (caller bug, not a scheduling outcome)."""


def validate_interval(iv: Interval, *, bound: Interval = DAY_BOUND) -> Interval:
    if not isinstance(iv.start_min, int) or not isinstance(iv.end_min, int):
        raise IntervalError(f"interval bounds must be int minutes: {iv!r}")
    if isinstance(iv.start_min, bool) or isinstance(iv.end_min, bool):
        raise IntervalError(f"interval bounds must be int minutes: {iv!r}")
    if not (bound.start_min <= iv.start_min < iv.end_min <= bound.end_min):
        raise IntervalError(
            f"interval must satisfy {bound.start_min} <= start < end <= {bound.end_min}; "
            f"got [{iv.start_min}, {iv.end_min})"
        )
    return iv


def overlaps(a: Interval, b: Interval) -> bool:
    # Half-open: touching boundaries do not overlap.
    return a.start_min < b.end_min and a.end_min > b.start_min


def merge_sorted(intervals: Iterable[Interval]) -> List[Interval]:
    """Union of intervals, ascending. Touching intervals merge."""
    ordered = sorted(intervals, key=lambda iv: (iv.start_min, iv.end_min))
    if not ordered:
        return []
    out: List[Interval] = []
    cur_s, cur_e = ordered[0].start_min, ordered[0].end_min
    for iv in ordered[1:]:
        if iv.start_min <= cur_e:
            cur_e = max(cur_e, iv.end_min)
        else:
            out.append(Interval(cur_s, cur_e))
            cur_s, cur_e = iv.start_min, iv.end_min
    out.append(Interval(cur_s, cur_e))
    return out


def complement(merged: List[Interval], bound: Interval = DAY_BOUND) -> List[Interval]:
    """Gaps of `bound` not covered by `merged` (which must come from merge_sorted)."""
    a, b = bound.start_min, bound.end_min
    if a >= b:
        return []
    out: List[Interval] = []
    cur = a
    for iv in merged:
        if iv.end_min <= cur:
            continue
        if iv.start_min >= b:
            break
        if iv.start_min > cur:
            out.append(Interval(cur, min(iv.start_min, b)))
        cur = max(cur, iv.end_min)
        if cur >= b:
            break
    if cur < b:
        out.append(Interval(cur, b))
    return [iv for iv in out if iv.end_min > iv.start_min]
