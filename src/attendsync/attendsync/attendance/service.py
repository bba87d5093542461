from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Sequence

from ..classes.repository import ClassRepository
from ..common.datetime_utils import day_start, now_local, parse_attendance_date
from ..common.validators import require_id
from ..core.constants import EDIT_WINDOW_HOURS
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..students.repository import StudentRepository
from .model import AttendanceRecord, AttendanceRow, AttendanceWrite
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_status(value: Any) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    v = str(value or "").strip().upper()
    if not v:
        raise ValidationError("Status is required")
    try:
        return AttendanceStatus(v)
    except ValueError:
        raise ValidationError("Status must be PRESENT or ABSENT")


class AttendanceService:
    """Write path of the attendance ledger.

    Every write is an upsert on (student, class, date) and is only allowed
    while the class date is inside the edit window.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        classes: ClassRepository,
        *,
        edit_window_hours: int = EDIT_WINDOW_HOURS,
    ):
        self._attendance = attendance
        self._students = students
        self._classes = classes
        self._edit_window = timedelta(hours=int(edit_window_hours))

    def is_within_edit_window(self, attendance_date: date, *, now: datetime | None = None) -> bool:
        now = now or now_local()
        return now - day_start(attendance_date) <= self._edit_window

    def _ensure_editable(self, attendance_date: date, now: datetime) -> None:
        if not self.is_within_edit_window(attendance_date, now=now):
            hours = int(self._edit_window.total_seconds() // 3600)
            logger.warning("Rejected attendance change for %s (outside %sh window)", attendance_date, hours)
            raise AuthorizationError(
                f"Attendance can only be marked or modified within {hours} hours of the class date"
            )

    def _ensure_student_and_class(self, student_id: int, class_id: int) -> None:
        if not self._students.get_by_id(student_id):
            raise NotFoundError("Student not found")
        if not self._classes.get_by_id(class_id):
            raise NotFoundError("Class not found")

    def _validate(
        self,
        *,
        student_id: Any,
        class_id: Any,
        date_value: Any,
        status: Any | None,
        now: datetime,
        with_status: bool = True,
    ) -> AttendanceWrite:
        if not student_id or not class_id or not date_value or (with_status and not status):
            if with_status:
                raise ValidationError("Student ID, class ID, date and status are required")
            raise ValidationError("Student ID, class ID, and date are required")

        sid = require_id(student_id, "Student ID")
        cid = require_id(class_id, "Class ID")
        attendance_date = parse_attendance_date(date_value)
        parsed_status = parse_status(status) if with_status else AttendanceStatus.PRESENT

        self._ensure_editable(attendance_date, now)
        self._ensure_student_and_class(sid, cid)

        return AttendanceWrite(student_id=sid, class_id=cid, attendance_date=attendance_date, status=parsed_status)

    def mark_attendance(
        self,
        *,
        teacher_id: int,
        student_id: Any,
        class_id: Any,
        date: Any,
        status: Any,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        tid = require_id(teacher_id, "Teacher ID")
        entry = self._validate(student_id=student_id, class_id=class_id, date_value=date, status=status, now=now)

        record = self._attendance.upsert(
            student_id=entry.student_id,
            class_id=entry.class_id,
            teacher_id=tid,
            attendance_date=entry.attendance_date,
            status=entry.status,
        )
        logger.info(
            "Teacher %s marked student %s %s in class %s on %s",
            tid, entry.student_id, record.status.value, entry.class_id, entry.attendance_date,
        )
        return record

    def toggle_attendance(
        self,
        *,
        teacher_id: int,
        student_id: Any,
        class_id: Any,
        date: Any,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """Flip an existing record, or create it as PRESENT.

        The result is whatever the ledger holds afterwards; callers must not
        infer it from their own previous state.
        """

        now = now or now_local()
        tid = require_id(teacher_id, "Teacher ID")
        entry = self._validate(
            student_id=student_id, class_id=class_id, date_value=date, status=None, now=now, with_status=False
        )

        record = self._attendance.toggle(
            student_id=entry.student_id,
            class_id=entry.class_id,
            teacher_id=tid,
            attendance_date=entry.attendance_date,
        )
        logger.info(
            "Teacher %s toggled student %s to %s in class %s on %s",
            tid, entry.student_id, record.status.value, entry.class_id, entry.attendance_date,
        )
        return record

    def bulk_sync_attendance(
        self,
        *,
        teacher_id: int,
        records: Sequence[Mapping[str, Any]],
        now: datetime | None = None,
    ) -> int:
        """Apply a batch of upserts (offline queue replay) as one transaction.

        Every record is validated before anything is written. Returns the
        number of distinct (student, class, date) keys written.
        """

        if not records or not isinstance(records, (list, tuple)):
            raise ValidationError("Attendance records are required")

        now = now or now_local()
        tid = require_id(teacher_id, "Teacher ID")

        by_key: dict[tuple[int, int, date], AttendanceWrite] = {}
        for i, raw in enumerate(records):
            if not isinstance(raw, Mapping):
                raise ValidationError(f"Record {i}: must be an object")
            try:
                entry = self._validate(
                    student_id=raw.get("student_id"),
                    class_id=raw.get("class_id"),
                    date_value=raw.get("date"),
                    status=raw.get("status"),
                    now=now,
                )
            except DomainError as e:
                raise type(e)(f"Record {i}: {e}") from e
            by_key.pop(entry.key, None)
            by_key[entry.key] = entry

        synced = self._attendance.upsert_many(teacher_id=tid, entries=list(by_key.values()))
        logger.info("Teacher %s synced %s attendance records (%s submitted)", tid, synced, len(records))
        return synced

    def get_attendance_by_class_and_date(self, *, class_id: Any, date: Any) -> list[AttendanceRow]:
        if not class_id or not date:
            raise ValidationError("Class ID and date are required")
        cid = require_id(class_id, "Class ID")
        attendance_date = parse_attendance_date(date)
        rows = self._attendance.list_rows(class_id=cid, start=attendance_date, end=attendance_date)
        return sorted(rows, key=lambda r: r.roll_no)
