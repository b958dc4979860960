# dayslot/util/timeparse.py
from __future__ import annotations

import datetime as dt
import re
from typing import Tuple

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

DAY_MINUTES = 24 * 60


def parse_hhmm(s: str) -> Tuple[int, int]:
    m = _HHMM_RE.match(s.strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    if not (0 <= hh <= 23 and 0 <= mm <= 59):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm


def hhmm_to_minute(s: str, *, allow_end_of_day: bool = False) -> int:
    """"09:30" -> 570.

    With allow_end_of_day, "24:00" maps to 1440 so it can close an interval.
    """
    if allow_end_of_day and s.strip() == "24:00":
        return DAY_MINUTES
    hh, mm = parse_hhmm(s)
    return hh * 60 + mm


def minute_to_hhmm(minute: int) -> str:
    """570 -> "09:30"; 1440 -> "24:00"."""
    minute = int(minute)
    if not (0 <= minute <= DAY_MINUTES):
        raise ValueError(f"minute out of day range: {minute}")
    return f"{minute // 60:02d}:{minute % 60:02d}"


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    return dt.datetime.strptime(s, "%Y-%m-%d").date()


def parse_local_datetime(s: str) -> dt.datetime:
    """Parse "YYYY-MM-DDTHH:MM" (or with a space) into a naive datetime."""
    ss = s.strip().replace(" ", "T")
    try:
        return dt.datetime.strptime(ss, "%Y-%m-%dT%H:%M")
    except ValueError as ex:
        raise ValueError(f"Invalid local datetime (want YYYY-MM-DDTHH:MM): {s!r}") from ex
