from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime, time

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_attendance_date(value) -> date:
    """Parse a class date and truncate it to the calendar day.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` strings and ISO-8601
    timestamps (a trailing ``Z`` is allowed).
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    v = str(value or "").strip()
    if not v:
        raise ValidationError("Date is required")

    try:
        return parse_iso_date(v)
    except ValueError:
        pass

    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(v).date()
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month (inclusive)."""
    if not MINYEAR <= int(year) <= MAXYEAR:
        raise ValidationError(f"Year must be between {MINYEAR} and {MAXYEAR}")
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    last = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last)


def previous_months(year: int, month: int, count: int) -> list[tuple[int, int]]:
    """``count`` consecutive (year, month) pairs ending at (year, month), oldest first."""
    out: list[tuple[int, int]] = []
    y, m = int(year), int(month)
    for _ in range(int(count)):
        if y < MINYEAR:
            raise ValidationError(f"Trend would start before year {MINYEAR}")
        out.append((y, m))
        m -= 1
        if m == 0:
            y, m = y - 1, 12
    out.reverse()
    return out
