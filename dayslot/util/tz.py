# dayslot/util/tz.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")
_LOCAL_ALIASES = frozenset({"local", "system", "native"})
_UTC_ALIASES = frozenset({"utc", "z", "gmt", "utc0", "utc+0"})


def normalize_tz_name(name: Optional[str]) -> str:
    """Map aliases to "local" or "UTC"; IANA names and "+HH:MM" offsets pass through."""
    if name is None:
        return "local"
    raw = str(name).strip()
    alias = raw.lower()
    if alias in _LOCAL_ALIASES or not raw:
        return "local"
    if alias in _UTC_ALIASES:
        return "UTC"
    return raw


def _fixed_offset(label: str, sign: str, hh: str, mm: str) -> dt.timezone:
    hours, minutes = int(hh), int(mm)
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid timezone offset: {label!r}")
    total = hours * 60 + minutes
    return dt.timezone(dt.timedelta(minutes=-total if sign == "-" else total))


def resolve_tz(name: Optional[str]) -> dt.tzinfo:
    """Resolve a timezone name into a tzinfo.

    Raises ValueError for invalid timezone identifiers.
    """
    tz_name = normalize_tz_name(name)

    if tz_name == "UTC":
        return dt.timezone.utc

    if tz_name == "local":
        tz = dt.datetime.now().astimezone().tzinfo
        return tz or dt.timezone.utc

    m = _OFFSET_RE.match(tz_name)
    if m:
        return _fixed_offset(tz_name, *m.groups())

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as ex:
        raise ValueError(f"Unknown timezone: {tz_name!r}") from ex


def minutes_of_day(t: dt.datetime) -> int:
    return t.hour * 60 + t.minute


class Clock(Protocol):
    def now(self) -> dt.datetime:
        """Naive wall-clock time in the user's timezone."""


class SystemClock:
    """Reads the machine clock and converts it to a naive local wall time in `tz`."""

    def __init__(self, tz: Optional[str] = "local") -> None:
        self.tz_name = normalize_tz_name(tz)
        self._tzinfo = resolve_tz(self.tz_name)

    def now(self) -> dt.datetime:
        return dt.datetime.now(tz=self._tzinfo).replace(tzinfo=None, second=0, microsecond=0)


class FixedClock:
    def __init__(self, at: dt.datetime) -> None:
        self._at = at.replace(tzinfo=None, second=0, microsecond=0)

    def now(self) -> dt.datetime:
        return self._at
