"""dayslot.api

Stable *library* entrypoint for dayslot.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from dayslot.conflicts import check_conflicts, overlap_segments, transition_warnings
from dayslot.gaps import block_for_click, free_intervals
from dayslot.interval import IntervalError, complement, merge_sorted, overlaps, validate_interval
from dayslot.model import (
    Conflict,
    DragSession,
    Interval,
    NeedsSplit,
    Placed,
    PlacementRequest,
    ScheduledItem,
    TaskSpec,
    TimeWindow,
    Unplaceable,
)
from dayslot.planner import (
    PlacementValidationError,
    find_slot,
    group_items_by_date,
    place_all,
    split_across_days,
    suggest_placement,
)
from dayslot.reschedule import CommitOutcome, CommitStatus, DragError, DragState, InteractiveRescheduler
from dayslot.store import InMemoryRepository, ItemBoard, ItemRepository
from dayslot.timeline import TimelineMapper
from dayslot.windows import DEFAULT_WINDOWS, TimeWindowCatalog


# --- Public API exports (locked by contract tests) ------------------------
# Keep changes intentional and reviewable.
_PUBLIC_EXPORTS = (
    "CommitOutcome",
    "CommitStatus",
    "Conflict",
    "DEFAULT_WINDOWS",
    "DragError",
    "DragSession",
    "DragState",
    "InMemoryRepository",
    "InteractiveRescheduler",
    "Interval",
    "IntervalError",
    "ItemBoard",
    "ItemRepository",
    "NeedsSplit",
    "Placed",
    "PlacementRequest",
    "PlacementValidationError",
    "ScheduledItem",
    "TaskSpec",
    "TimeWindow",
    "TimeWindowCatalog",
    "TimelineMapper",
    "Unplaceable",
    "block_for_click",
    "check_conflicts",
    "complement",
    "find_slot",
    "free_intervals",
    "group_items_by_date",
    "merge_sorted",
    "overlap_segments",
    "overlaps",
    "place_all",
    "split_across_days",
    "suggest_placement",
    "transition_warnings",
    "validate_interval",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
