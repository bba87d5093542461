from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from ..classes.model import SchoolClass
from ..classes.repository import ClassRepository
from ..common.datetime_utils import month_bounds, now_local, parse_attendance_date, previous_months
from ..common.rounding import percentage
from ..common.validators import require_id, require_percentage
from ..core.constants import DEFAULT_TREND_MONTHS
from ..core.exceptions import NotFoundError, ValidationError
from ..settings.repository import SettingsRepository
from ..students.repository import StudentRepository
from .model import AttendanceRecord, AttendanceRow
from .repository import AttendanceRepository


@dataclass(frozen=True)
class AttendanceSummary:
    total_classes: int
    total_present: int
    total_absent: int
    attendance_percentage: float


@dataclass(frozen=True)
class StudentPercentage:
    student_id: int
    total_classes: int
    present_count: int
    percentage: float


@dataclass(frozen=True)
class ClassAverage:
    class_id: int
    total_students: int
    total_classes: int
    present_count: int
    average_attendance: int


@dataclass(frozen=True)
class MonthlyTrendPoint:
    month: str
    present_records: int
    total_records: int
    attendance_rate: int


@dataclass(frozen=True)
class StudentMonthSummary:
    student_id: int
    name: str
    roll_no: str
    present: int
    absent: int
    attendance_percentage: int


@dataclass(frozen=True)
class LowAttendanceEntry:
    student_id: int
    name: str
    roll_no: str
    class_name: str
    attendance_percentage: int


@dataclass(frozen=True)
class TodayAttendance:
    class_id: int
    date: date
    present_today: int
    absent_today: int


def summarize(records: Iterable[AttendanceRecord], *, places: int = 0) -> AttendanceSummary:
    """Totals and percentage over a set of ledger rows."""

    total = 0
    present = 0
    for r in records:
        total += 1
        if r.is_present:
            present += 1
    return AttendanceSummary(
        total_classes=total,
        total_present=present,
        total_absent=total - present,
        attendance_percentage=percentage(present, total, places),
    )


class AttendanceAnalyticsService:
    """Read-only statistics derived from the ledger on every call (no cache)."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        classes: ClassRepository,
        settings: SettingsRepository,
    ):
        self._attendance = attendance
        self._students = students
        self._classes = classes
        self._settings = settings

    def _get_class(self, class_id: Any) -> SchoolClass:
        cid = require_id(class_id, "Class ID")
        cls = self._classes.get_by_id(cid)
        if not cls:
            raise NotFoundError("Class not found")
        return cls

    def student_percentage(self, student_id: Any) -> StudentPercentage:
        sid = require_id(student_id, "Student ID")
        s = summarize(self._attendance.list_records(student_id=sid), places=2)
        return StudentPercentage(
            student_id=sid,
            total_classes=s.total_classes,
            present_count=s.total_present,
            percentage=s.attendance_percentage,
        )

    def class_average(self, class_id: Any) -> ClassAverage:
        """Average over an assumed full roster on every day attendance was taken.

        Missing rows count the same as ABSENT rows. Students who joined
        mid-term skew the figure; it is an approximation.
        """

        cls = self._get_class(class_id)
        total_students = len(self._students.list_by_class(cls.class_id, active_only=True))
        records = self._attendance.list_records(class_id=cls.class_id)

        total_classes = len({r.attendance_date for r in records})
        present_count = sum(1 for r in records if r.is_present)

        return ClassAverage(
            class_id=cls.class_id,
            total_students=total_students,
            total_classes=total_classes,
            present_count=present_count,
            average_attendance=percentage(present_count, total_students * total_classes),
        )

    def monthly_trend(
        self,
        *,
        year: Any,
        month: Any,
        class_id: Any = None,
        months: Any = DEFAULT_TREND_MONTHS,
    ) -> list[MonthlyTrendPoint]:
        """One point per calendar month, oldest first, ending at (year, month)."""

        try:
            y, m, n = int(year), int(month), int(months)
        except (TypeError, ValueError):
            raise ValidationError("Year, month and months must be numbers")
        if n < 1 or n > 24:
            raise ValidationError("Months must be between 1 and 24")
        month_bounds(y, m)

        cid = self._get_class(class_id).class_id if class_id else None
        periods = previous_months(y, m, n)
        start, _ = month_bounds(*periods[0])
        _, end = month_bounds(*periods[-1])

        buckets: dict[tuple[int, int], list[int]] = {p: [0, 0] for p in periods}
        for r in self._attendance.list_records(class_id=cid, start=start, end=end):
            b = buckets.get((r.attendance_date.year, r.attendance_date.month))
            if b is None:
                continue
            b[1] += 1
            if r.is_present:
                b[0] += 1

        return [
            MonthlyTrendPoint(
                month=f"{py:04d}-{pm:02d}",
                present_records=present,
                total_records=total,
                attendance_rate=percentage(present, total),
            )
            for (py, pm), (present, total) in buckets.items()
        ]

    def monthly_class_summary(self, *, class_id: Any, year: Any, month: Any) -> list[StudentMonthSummary]:
        cls = self._get_class(class_id)
        try:
            start, end = month_bounds(int(year), int(month))
        except (TypeError, ValueError):
            raise ValidationError("Month and year must be numbers")

        roster = {s.student_id: s for s in self._students.list_by_class(cls.class_id, active_only=False)}
        counts: dict[int, list[int]] = defaultdict(lambda: [0, 0])
        for r in self._attendance.list_records(class_id=cls.class_id, start=start, end=end):
            counts[r.student_id][0 if r.is_present else 1] += 1

        out: list[StudentMonthSummary] = []
        for student_id, (present, absent) in counts.items():
            s = roster.get(student_id) or self._students.get_by_id(student_id)
            out.append(
                StudentMonthSummary(
                    student_id=student_id,
                    name=s.full_name if s else "Unknown",
                    roll_no=s.roll_no if s else "",
                    present=present,
                    absent=absent,
                    attendance_percentage=percentage(present, present + absent),
                )
            )
        out.sort(key=lambda x: x.roll_no)
        return out

    def class_report(self, *, class_id: Any, start: Any, end: Any) -> Sequence[AttendanceRow]:
        if not start or not end:
            raise ValidationError("Class ID, start date and end date are required")
        cls = self._get_class(class_id)
        start_d = parse_attendance_date(start)
        end_d = parse_attendance_date(end)
        if start_d > end_d:
            raise ValidationError("Start date must not be after end date")
        return self._attendance.list_rows(class_id=cls.class_id, start=start_d, end=end_d)

    def low_attendance_roster(self, threshold: Optional[Any] = None) -> list[LowAttendanceEntry]:
        """Students whose rounded percentage is strictly below the threshold.

        Scans every student and its rows; fine at school scale.
        """

        if threshold is None:
            threshold = self._settings.get().attendance_threshold
        limit = require_percentage(threshold, "Threshold")

        class_names = {c.class_id: c.display_name for c in self._classes.list_all()}
        out: list[LowAttendanceEntry] = []
        for student in self._students.list_all():
            s = summarize(self._attendance.list_records(student_id=student.student_id))
            if s.attendance_percentage < limit:
                out.append(
                    LowAttendanceEntry(
                        student_id=student.student_id,
                        name=student.full_name or "Unknown",
                        roll_no=student.roll_no,
                        class_name=class_names.get(student.class_id, "-"),
                        attendance_percentage=int(s.attendance_percentage),
                    )
                )
        return out

    def today_attendance(self, class_id: Any, *, today: Optional[date] = None) -> TodayAttendance:
        cls = self._get_class(class_id)
        today = today or now_local().date()
        records = self._attendance.list_records(class_id=cls.class_id, start=today, end=today)
        present = sum(1 for r in records if r.is_present)
        return TodayAttendance(
            class_id=cls.class_id,
            date=today,
            present_today=present,
            absent_today=len(records) - present,
        )
