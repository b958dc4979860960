# dayslot/cli.py
from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from .gaps import block_for_click, free_intervals
from .io import interval_to_dict, load_items, load_tasks, load_windows, result_to_dict
from .model import PlacementRequest, ScheduledItem
from .planner import group_items_by_date, place_all, split_across_days, suggest_placement
from .util.console import eprint
from .util.timeparse import hhmm_to_minute, parse_date_yyyy_mm_dd, parse_local_datetime
from .util.tz import FixedClock, SystemClock
from .windows import DEFAULT_WINDOWS, TimeWindowCatalog

logger = logging.getLogger("dayslot")


def _die(msg: str, rc: int = 2) -> int:
    eprint(f"ERROR: {msg}")
    return rc


def _emit(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False) + "\n")


def _add_common(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--items", default=None, help="JSON file with existing items (default: none)")
    ap.add_argument(
        "--windows",
        default=os.getenv("DAYSLOT_WINDOWS"),
        help="JSON file with time windows (default: env DAYSLOT_WINDOWS or built-in dawn/morning/afternoon/evening)",
    )
    ap.add_argument(
        "--tz",
        default=os.getenv("DAYSLOT_TZ", "local"),
        help="Timezone of the clock used for today's 10-minute buffer (default: env DAYSLOT_TZ or 'local')",
    )
    ap.add_argument("--now", default=None, help="Override the clock: local time YYYY-MM-DDTHH:MM")
    ap.add_argument("--debug", action="store_true", help="Verbose logging to stderr")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="dayslot",
        description="Place time-bounded tasks into prioritized day windows without overlaps.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("place", help="Suggest a placement for one task")
    p.add_argument("--date", required=True, help="Target date YYYY-MM-DD")
    p.add_argument("--duration", type=int, required=True, help="Duration in minutes")
    p.add_argument("--allow-conflicts", action="store_true", help="Return a forced placement when nothing is free")
    p.add_argument("--allow-multi-day", action="store_true", help="Split across days when the task does not fit")
    _add_common(p)

    p = sub.add_parser("batch", help="Place an ordered list of tasks (FIFO)")
    p.add_argument("--date", required=True, help="Target date YYYY-MM-DD")
    p.add_argument("--tasks", required=True, help="JSON file with tasks [{id, duration_min}]")
    _add_common(p)

    p = sub.add_parser("split", help="Spread a long task over consecutive days")
    p.add_argument("--date", required=True, help="First date YYYY-MM-DD")
    p.add_argument("--duration", type=int, required=True, help="Total minutes")
    p.add_argument("--daily-cap", type=int, default=240, help="Max minutes per day (default: 240)")
    _add_common(p)

    p = sub.add_parser("gaps", help="List free intervals of a date")
    p.add_argument("--date", required=True, help="Date YYYY-MM-DD")
    _add_common(p)

    p = sub.add_parser("click", help="Block created by clicking an empty spot")
    p.add_argument("--date", required=True, help="Date YYYY-MM-DD")
    p.add_argument("--at", required=True, help="Clicked time HH:MM")
    _add_common(p)

    return ap


def _now(ns: argparse.Namespace) -> dt.datetime:
    if ns.now:
        return FixedClock(parse_local_datetime(ns.now)).now()
    return SystemClock(ns.tz).now()


def main(argv: Optional[List[str]] = None) -> int:
    ns = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if ns.debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        date = parse_date_yyyy_mm_dd(ns.date)
        now = _now(ns)
    except ValueError as e:
        return _die(str(e))

    items: List[ScheduledItem] = []
    if ns.items:
        try:
            items = load_items(Path(ns.items))
        except Exception as e:
            return _die(f"Failed to load items: {ns.items} ({e})")

    catalog = TimeWindowCatalog(DEFAULT_WINDOWS)
    if ns.windows:
        try:
            catalog = TimeWindowCatalog(load_windows(Path(ns.windows)))
        except Exception as e:
            return _die(f"Failed to load windows: {ns.windows} ({e})")
    logger.debug("windows by priority: %s", [w.period for w in catalog.enabled_by_priority()])

    try:
        if ns.cmd == "place":
            req = PlacementRequest(
                date=date,
                duration_min=ns.duration,
                allow_conflicts=bool(ns.allow_conflicts),
                allow_multi_day=bool(ns.allow_multi_day),
            )
            _emit(result_to_dict(suggest_placement(req, items, catalog, now=now)))
        elif ns.cmd == "batch":
            try:
                tasks = load_tasks(Path(ns.tasks))
            except Exception as e:
                return _die(f"Failed to load tasks: {ns.tasks} ({e})")
            results = place_all(tasks, date, items, catalog, now=now)
            _emit([dict(result_to_dict(r), id=t.id) for t, r in zip(tasks, results)])
        elif ns.cmd == "split":
            res = split_across_days(
                date, ns.duration, group_items_by_date(items), catalog, daily_cap_min=ns.daily_cap, now=now
            )
            _emit(result_to_dict(res))
        elif ns.cmd == "gaps":
            _emit([interval_to_dict(g) for g in free_intervals(date, items)])
        elif ns.cmd == "click":
            block = block_for_click(date, items, hhmm_to_minute(ns.at))
            _emit(interval_to_dict(block) if block is not None else None)
    except ValueError as e:
        return _die(str(e))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
