from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one ledger row per (student, class, day)."""

    attendance_id: int
    student_id: int
    class_id: int
    teacher_id: Optional[int]
    attendance_date: date
    status: AttendanceStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[int, int, date]:
        return (self.student_id, self.class_id, self.attendance_date)

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT


@dataclass(frozen=True)
class AttendanceWrite:
    """A validated upsert waiting to be written (bulk sync)."""

    student_id: int
    class_id: int
    attendance_date: date
    status: AttendanceStatus

    @property
    def key(self) -> tuple[int, int, date]:
        return (self.student_id, self.class_id, self.attendance_date)


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model for history/report screens (joined with student, class and teacher)."""

    attendance_id: int
    student_id: int
    student_name: str
    roll_no: str
    class_id: int
    class_name: str
    teacher_id: Optional[int]
    teacher_name: Optional[str]
    attendance_date: date
    status: AttendanceStatus

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT
