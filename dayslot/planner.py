# dayslot/planner.py
"""Placement engine: single slot search, FIFO batch placement, multi-day split.

All functions here are pure and synchronous. "Now" is an explicit input (a
naive local datetime) so results are deterministic.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .interval import overlaps
from .model import (
    Conflict,
    Interval,
    NeedsSplit,
    Placed,
    PlacementRequest,
    PlacementResult,
    ScheduledItem,
    TaskSpec,
    TimeWindow,
    Unplaceable,
)
from .util.tz import minutes_of_day
from .windows import TimeWindowCatalog, as_catalog

logger = logging.getLogger(__name__)

SEARCH_STEP_MIN = 30
NOW_BUFFER_MIN = 10
DEFAULT_DAILY_CAP_MIN = 240
MAX_SPLIT_DAYS = 14

PROPOSED_TAG = "proposed"

Windows = Union[TimeWindowCatalog, Iterable[TimeWindow]]
TaskLike = Union[TaskSpec, Tuple[str, int]]


class PlacementValidationError(ValueError):
    """Raised for invalid placement input, before any window search."""


def _require_positive_minutes(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PlacementValidationError(f"{label} must be an int number of minutes; got {value!r}")
    if value <= 0:
        raise PlacementValidationError(f"{label} must be > 0; got {value}")
    return value


def items_on(date: dt.date, items: Iterable[ScheduledItem]) -> List[ScheduledItem]:
    return [it for it in items if it.date == date]


def group_items_by_date(items: Iterable[ScheduledItem]) -> Dict[dt.date, List[ScheduledItem]]:
    out: Dict[dt.date, List[ScheduledItem]] = {}
    for it in items:
        out.setdefault(it.date, []).append(it)
    return out


def _lower_bound(window: TimeWindow, date: dt.date, now: Optional[dt.datetime]) -> int:
    if now is not None and now.date() == date:
        return max(window.start_min, minutes_of_day(now) + NOW_BUFFER_MIN)
    return window.start_min


def _scan(
    date: dt.date,
    duration_min: int,
    day_items: Sequence[ScheduledItem],
    windows: Sequence[TimeWindow],
    now: Optional[dt.datetime],
    *,
    force: bool,
) -> Optional[Tuple[Interval, Tuple[ScheduledItem, ...]]]:
    """First candidate in priority order; with force, overlap does not disqualify it."""
    for w in windows:
        if w.end_min <= w.start_min:
            continue
        cursor = _lower_bound(w, date, now)
        while cursor + duration_min <= w.end_min:
            cand = Interval(cursor, cursor + duration_min)
            hits = tuple(it for it in day_items if overlaps(cand, it.interval))
            if not hits or force:
                return cand, hits
            # Jump past the whole blocking item instead of re-testing each step inside it.
            cursor = max(max(it.interval.end_min for it in hits), cursor + SEARCH_STEP_MIN)
    return None


def find_slot(
    date: dt.date,
    duration_min: int,
    existing_items: Iterable[ScheduledItem],
    windows: Windows,
    *,
    allow_conflicts: bool = False,
    now: Optional[dt.datetime] = None,
) -> PlacementResult:
    """Find one slot for `duration_min` on `date`.

    Returns Placed, Conflict (only with allow_conflicts) or Unplaceable.
    Items dated other than `date` are ignored. Never rolls over to another day.
    """
    _require_positive_minutes(duration_min, "duration_min")

    ordered = as_catalog(windows).enabled_by_priority()
    day_items = items_on(date, existing_items)

    hit = _scan(date, duration_min, day_items, ordered, now, force=False)
    if hit is not None:
        logger.debug("placed %smin on %s at %s", duration_min, date, hit[0])
        return Placed(interval=hit[0])

    if allow_conflicts:
        hit = _scan(date, duration_min, day_items, ordered, now, force=True)
        if hit is not None:
            logger.debug("forced %smin on %s at %s over %d item(s)", duration_min, date, hit[0], len(hit[1]))
            return Conflict(interval=hit[0], conflicting_items=hit[1])

    return Unplaceable(reason=f"no enabled window fits {duration_min}min on {date.isoformat()}")


def _as_task(t: TaskLike) -> TaskSpec:
    if isinstance(t, TaskSpec):
        return t
    task_id, dur = t
    return TaskSpec(id=str(task_id), duration_min=dur)


def place_all(
    tasks: Sequence[TaskLike],
    date: dt.date,
    existing_items: Iterable[ScheduledItem],
    windows: Windows,
    *,
    now: Optional[dt.datetime] = None,
) -> List[PlacementResult]:
    """Place tasks strictly in input order (FIFO greedy, never reordered).

    Each Placed result becomes a synthetic item that later tasks must avoid.
    Results are index-aligned with `tasks`.
    """
    queue = [_as_task(t) for t in tasks]
    for task in queue:
        _require_positive_minutes(task.duration_min, f"duration_min of task {task.id!r}")

    catalog = as_catalog(windows)
    placed_so_far: List[ScheduledItem] = list(existing_items)
    results: List[PlacementResult] = []
    for task in queue:
        res = find_slot(date, task.duration_min, placed_so_far, catalog, now=now)
        if isinstance(res, Placed):
            placed_so_far.append(
                ScheduledItem(id=task.id, date=date, interval=res.interval, tag=PROPOSED_TAG, title=task.title)
            )
        results.append(res)
    return results


def split_across_days(
    start_date: dt.date,
    total_min: int,
    items_by_date: Mapping[dt.date, Sequence[ScheduledItem]],
    windows: Windows,
    *,
    daily_cap_min: int = DEFAULT_DAILY_CAP_MIN,
    max_days: int = MAX_SPLIT_DAYS,
    now: Optional[dt.datetime] = None,
) -> Union[NeedsSplit, Unplaceable]:
    """Spread `total_min` over consecutive days, at most `daily_cap_min` per day.

    A day with no room is skipped, not fatal. When time remains after
    `max_days`, the NeedsSplit is partial (remaining_min > 0).
    """
    _require_positive_minutes(total_min, "total_min")
    _require_positive_minutes(daily_cap_min, "daily_cap_min")
    _require_positive_minutes(max_days, "max_days")

    catalog = as_catalog(windows)
    placements: Dict[dt.date, Interval] = {}
    remaining = total_min
    day = start_date
    for _ in range(max_days):
        if remaining <= 0:
            break
        chunk = min(remaining, daily_cap_min)
        res = find_slot(day, chunk, items_by_date.get(day, ()), catalog, now=now)
        if isinstance(res, Placed):
            placements[day] = res.interval
            remaining -= chunk
        else:
            logger.debug("split: no room for %smin on %s, skipping day", chunk, day)
        day = day + dt.timedelta(days=1)

    if not placements:
        return Unplaceable(reason=f"no day within {max_days} from {start_date.isoformat()} fits any part")
    return NeedsSplit(placements=placements, requested_min=total_min, remaining_min=max(0, remaining))


def suggest_placement(
    request: PlacementRequest,
    existing_items: Iterable[ScheduledItem],
    windows: Windows,
    *,
    now: Optional[dt.datetime] = None,
    daily_cap_min: int = DEFAULT_DAILY_CAP_MIN,
) -> PlacementResult:
    """Free slot first, then forced placement, then a multi-day split, as the request allows."""
    _require_positive_minutes(request.duration_min, "duration_min")

    items = list(existing_items)
    catalog = as_catalog(windows)

    res = find_slot(request.date, request.duration_min, items, catalog, now=now)
    if isinstance(res, Placed):
        return res

    if request.allow_conflicts:
        forced = find_slot(request.date, request.duration_min, items, catalog, allow_conflicts=True, now=now)
        if isinstance(forced, Conflict):
            return forced

    if request.allow_multi_day:
        return split_across_days(
            request.date,
            request.duration_min,
            group_items_by_date(items),
            catalog,
            daily_cap_min=daily_cap_min,
            now=now,
        )

    return res
