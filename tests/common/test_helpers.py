from __future__ import annotations

from datetime import date, datetime

import pytest

from src.attendsync.attendsync.classes.model import SchoolClass
from src.attendsync.attendsync.common.datetime_utils import month_bounds, parse_attendance_date, previous_months
from src.attendsync.attendsync.common.rounding import percentage, round_half_up
from src.attendsync.attendsync.common.serialization import to_jsonable
from src.attendsync.attendsync.common.validators import require_id
from src.attendsync.attendsync.core.enums import AttendanceStatus
from src.attendsync.attendsync.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "value, places, expected",
    [(62.5, 0, 63), (37.5, 0, 38), (74.49, 0, 74), (66.666, 2, 66.67), (12.345, 2, 12.35)],
)
def test_round_half_up(value, places, expected):
    assert round_half_up(value, places) == expected


def test_percentage_of_zero_is_zero():
    assert percentage(0, 0) == 0
    assert percentage(0, 0, 2) == 0.0
    assert percentage(3, 4) == 75


@pytest.mark.parametrize(
    "part, whole, places, expected",
    [(57, 200, 0, 29), (29, 200, 0, 15), (1, 8, 1, 12.5), (1, 16, 2, 6.25), (1, 3, 2, 33.33), (2, 3, 0, 67)],
)
def test_percentage_rounds_exact_halves_up(part, whole, places, expected):
    assert percentage(part, whole, places) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2026-03-10", date(2026, 3, 10)),
        ("2026-03-10T23:59:00", date(2026, 3, 10)),
        (datetime(2026, 3, 10, 8, 0), date(2026, 3, 10)),
        (date(2026, 3, 10), date(2026, 3, 10)),
    ],
)
def test_parse_attendance_date(value, expected):
    assert parse_attendance_date(value) == expected


@pytest.mark.parametrize("value", ["", None, "yesterday", "2026-13-01"])
def test_parse_attendance_date_rejects(value):
    with pytest.raises(ValidationError):
        parse_attendance_date(value)


def test_month_helpers():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert previous_months(2026, 2, 3) == [(2025, 12), (2026, 1), (2026, 2)]
    with pytest.raises(ValidationError):
        month_bounds(2026, 0)


@pytest.mark.parametrize("year, month, count", [(1, 1, 2), (0, 12, 1), (10000, 1, 1)])
def test_month_helpers_stay_inside_the_calendar(year, month, count):
    with pytest.raises(ValidationError):
        for y, m in previous_months(year, month, count):
            month_bounds(y, m)


@pytest.mark.parametrize("value", [0, -3, "x", None, True, 1.9, float("nan"), float("inf")])
def test_require_id_rejects(value):
    with pytest.raises(ValidationError):
        require_id(value, "Student ID")


def test_to_jsonable_handles_domain_objects():
    cls = SchoolClass(class_id=1, name="Grade 10", section="A", subjects=("Math",), academic_year="2025-2026")

    out = to_jsonable({"cls": cls, "status": AttendanceStatus.ABSENT, "day": date(2026, 3, 10)})

    assert out["cls"]["subjects"] == ["Math"]
    assert out["status"] == "ABSENT"
    assert out["day"] == "2026-03-10"


def test_require_id_accepts_integral_values():
    assert require_id("7", "Student ID") == 7
    assert require_id(7.0, "Student ID") == 7
