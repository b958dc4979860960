# dayslot/io.py
"""JSON loaders for windows / items / tasks and result serialization.

Accepted shapes:

  windows: [{"period": "morning", "start": "06:00", "end": "12:00",
             "priority": 1, "enabled": true}, ...]
           "start_hour"/"end_hour" may replace "start"/"end"; the list may be
           wrapped as {"windows": [...]} or {"timeSlotPreferences": [...]}.
  items:   [{"id": "a", "date": "2025-01-06", "start": "09:00", "end": "10:00",
             "tag": "", "title": ""}, ...]
  tasks:   [{"id": "t1", "duration_min": 60, "title": ""}, ...]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from .interval import validate_interval
from .model import (
    Conflict,
    Interval,
    NeedsSplit,
    Placed,
    PlacementResult,
    ScheduledItem,
    TaskSpec,
    TimeWindow,
    Unplaceable,
)
from .util.timeparse import hhmm_to_minute, minute_to_hhmm, parse_date_yyyy_mm_dd


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8", errors="replace"))


def _as_int(v: Any) -> int | None:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    return None


def _window_bound(raw: Dict[str, Any], key: str, label: str) -> int:
    v = raw.get(key)
    if isinstance(v, str):
        return hhmm_to_minute(v, allow_end_of_day=True)
    hours = _as_int(raw.get(f"{key}_hour", raw.get(f"{key}Hour")))
    if hours is not None:
        return hours * 60
    raise ValueError(f"window {label} must include {key!r} (HH:MM) or {key}_hour")


def windows_from_obj(obj: Any) -> List[TimeWindow]:
    if isinstance(obj, dict):
        obj = obj.get("windows", obj.get("timeSlotPreferences"))
    if not isinstance(obj, list):
        raise ValueError("windows must be a JSON list (or an object with a 'windows' list)")

    out: List[TimeWindow] = []
    for i, raw in enumerate(obj):
        if not isinstance(raw, dict):
            raise ValueError(f"window #{i} must be an object")
        period = raw.get("period")
        if not isinstance(period, str) or not period.strip():
            raise ValueError(f"window #{i} must have a non-empty 'period'")
        label = f"{period!r}"
        start = _window_bound(raw, "start", label)
        end = _window_bound(raw, "end", label)
        if not (0 <= start <= end <= 1440):
            raise ValueError(f"window {label} must satisfy 00:00 <= start <= end <= 24:00")
        priority = _as_int(raw.get("priority"))
        if priority is None:
            raise ValueError(f"window {label} must have an int 'priority'")
        enabled = raw.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError(f"window {label} 'enabled' must be a boolean")
        out.append(TimeWindow(period=period.strip(), start_min=start, end_min=end, priority=priority, enabled=enabled))
    return out


def items_from_obj(obj: Any) -> List[ScheduledItem]:
    if isinstance(obj, dict):
        obj = obj.get("items")
    if not isinstance(obj, list):
        raise ValueError("items must be a JSON list (or an object with an 'items' list)")

    out: List[ScheduledItem] = []
    seen: set[str] = set()
    for i, raw in enumerate(obj):
        if not isinstance(raw, dict):
            raise ValueError(f"item #{i} must be an object")
        item_id = raw.get("id")
        if not isinstance(item_id, str) or not item_id.strip():
            raise ValueError(f"item #{i} must have a non-empty string 'id'")
        if item_id in seen:
            raise ValueError(f"duplicate item id: {item_id}")
        seen.add(item_id)
        date_s = raw.get("date")
        if not isinstance(date_s, str):
            raise ValueError(f"item {item_id} must have 'date' YYYY-MM-DD")
        start_s, end_s = raw.get("start"), raw.get("end")
        if not isinstance(start_s, str) or not isinstance(end_s, str):
            raise ValueError(f"item {item_id} must have 'start' and 'end' as HH:MM")
        iv = Interval(hhmm_to_minute(start_s), hhmm_to_minute(end_s, allow_end_of_day=True))
        validate_interval(iv)
        out.append(
            ScheduledItem(
                id=item_id,
                date=parse_date_yyyy_mm_dd(date_s),
                interval=iv,
                tag=str(raw.get("tag") or ""),
                title=str(raw.get("title") or ""),
            )
        )
    return out


def tasks_from_obj(obj: Any) -> List[TaskSpec]:
    if isinstance(obj, dict):
        obj = obj.get("tasks")
    if not isinstance(obj, list):
        raise ValueError("tasks must be a JSON list (or an object with a 'tasks' list)")

    out: List[TaskSpec] = []
    for i, raw in enumerate(obj):
        if not isinstance(raw, dict):
            raise ValueError(f"task #{i} must be an object")
        task_id = raw.get("id")
        if not isinstance(task_id, str) or not task_id.strip():
            raise ValueError(f"task #{i} must have a non-empty string 'id'")
        dur = _as_int(raw.get("duration_min"))
        if dur is None or dur <= 0:
            raise ValueError(f"task {task_id} duration_min must be a positive int")
        out.append(TaskSpec(id=task_id, duration_min=dur, title=str(raw.get("title") or "")))
    return out


def load_windows(path: Path) -> List[TimeWindow]:
    return windows_from_obj(_read_json(path))


def load_items(path: Path) -> List[ScheduledItem]:
    return items_from_obj(_read_json(path))


def load_tasks(path: Path) -> List[TaskSpec]:
    return tasks_from_obj(_read_json(path))


def interval_to_dict(iv: Interval) -> Dict[str, Any]:
    return {
        "start": minute_to_hhmm(iv.start_min),
        "end": minute_to_hhmm(iv.end_min),
        "start_min": iv.start_min,
        "end_min": iv.end_min,
    }


def item_to_dict(it: ScheduledItem) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": it.id, "date": it.date.isoformat()}
    d.update({"start": minute_to_hhmm(it.interval.start_min), "end": minute_to_hhmm(it.interval.end_min)})
    if it.tag:
        d["tag"] = it.tag
    if it.title:
        d["title"] = it.title
    return d


def result_to_dict(res: PlacementResult) -> Dict[str, Any]:
    out: Dict[str, Any] = {"kind": res.kind}
    if isinstance(res, Placed):
        out["interval"] = interval_to_dict(res.interval)
    elif isinstance(res, Conflict):
        out["interval"] = interval_to_dict(res.interval)
        out["conflicting_items"] = [item_to_dict(it) for it in res.conflicting_items]
    elif isinstance(res, NeedsSplit):
        days: List[Dict[str, Any]] = []
        for day in sorted(res.placements):
            d = {"date": day.isoformat()}
            d.update(interval_to_dict(res.placements[day]))
            days.append(d)
        out["placements"] = days
        out["requested_min"] = res.requested_min
        out["remaining_min"] = res.remaining_min
        out["partial"] = res.partial
    elif isinstance(res, Unplaceable):
        out["reason"] = res.reason
    return out

