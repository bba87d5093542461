from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

import pytest

from src.attendsync.attendsync.attendance.analytics import AttendanceAnalyticsService
from src.attendsync.attendsync.attendance.model import AttendanceRecord, AttendanceRow, AttendanceWrite
from src.attendsync.attendsync.attendance.service import AttendanceService
from src.attendsync.attendsync.classes.model import SchoolClass
from src.attendsync.attendsync.core.enums import AttendanceStatus, Role
from src.attendsync.attendsync.core.exceptions import NotFoundError, SyncError
from src.attendsync.attendsync.reports.service import ReportService
from src.attendsync.attendsync.settings.model import SystemSettings
from src.attendsync.attendsync.settings.service import SettingsService
from src.attendsync.attendsync.students.model import Student
from src.attendsync.attendsync.users.model import User
from src.attendsync.attendsync.users.service import AuthService

FIXED_NOW = datetime(2026, 3, 10, 10, 0)


class InMemoryUsers:
    def __init__(self):
        self.by_id: dict[int, User] = {}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        for u in self.by_id.values():
            if u.email.lower() == email.lower():
                return u
        return None

    def count_by_role(self):
        counts = {role: 0 for role in Role}
        for u in self.by_id.values():
            counts[u.role] += 1
        return counts


class InMemoryClasses:
    def __init__(self):
        self.by_id: dict[int, SchoolClass] = {}

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        return self.by_id.get(int(class_id))

    def list_all(self):
        return sorted(self.by_id.values(), key=lambda c: (c.name, c.section))

    def count(self) -> int:
        return len(self.by_id)


class InMemoryStudents:
    def __init__(self):
        self.by_id: dict[int, Student] = {}

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self.by_id.get(int(student_id))

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        for s in self.by_id.values():
            if s.user_id == int(user_id):
                return s
        return None

    def list_by_class(self, class_id: int, *, active_only: bool = True):
        out = [s for s in self.by_id.values() if s.class_id == int(class_id) and (s.is_active or not active_only)]
        return sorted(out, key=lambda s: s.roll_no)

    def list_all(self):
        return sorted(self.by_id.values(), key=lambda s: (s.class_id, s.roll_no))

    def count(self) -> int:
        return len(self.by_id)


class InMemorySettings:
    def __init__(self):
        self.row: Optional[SystemSettings] = SystemSettings()

    def get(self) -> SystemSettings:
        if self.row is None:
            raise NotFoundError("System settings row is missing")
        return self.row

    def update_attendance_threshold(self, threshold: float) -> bool:
        if self.row is None:
            return False
        self.row = replace(self.row, attendance_threshold=float(threshold))
        return True


class InMemoryAttendance:
    """Ledger keyed by (student, class, date), same upsert semantics as the MySQL table."""

    def __init__(self, students: InMemoryStudents, classes: InMemoryClasses, users: InMemoryUsers):
        self._students = students
        self._classes = classes
        self._users = users
        self._by_key: dict[tuple[int, int, date], AttendanceRecord] = {}
        self._id = 0
        self.fail_bulk = False

    def all(self) -> list[AttendanceRecord]:
        return list(self._by_key.values())

    def _write(self, *, student_id, class_id, teacher_id, attendance_date, status) -> AttendanceRecord:
        key = (int(student_id), int(class_id), attendance_date)
        existing = self._by_key.get(key)
        if existing:
            rec = replace(existing, status=status, teacher_id=teacher_id, updated_at=FIXED_NOW)
        else:
            self._id += 1
            rec = AttendanceRecord(
                attendance_id=self._id,
                student_id=key[0],
                class_id=key[1],
                teacher_id=teacher_id,
                attendance_date=attendance_date,
                status=status,
                created_at=FIXED_NOW,
                updated_at=FIXED_NOW,
            )
        self._by_key[key] = rec
        return rec

    def get(self, *, student_id: int, class_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        return self._by_key.get((int(student_id), int(class_id), attendance_date))

    def upsert(self, *, student_id, class_id, teacher_id, attendance_date, status) -> AttendanceRecord:
        return self._write(
            student_id=student_id, class_id=class_id, teacher_id=teacher_id, attendance_date=attendance_date, status=status
        )

    def toggle(self, *, student_id, class_id, teacher_id, attendance_date) -> AttendanceRecord:
        existing = self.get(student_id=student_id, class_id=class_id, attendance_date=attendance_date)
        status = existing.status.flipped() if existing else AttendanceStatus.PRESENT
        return self._write(
            student_id=student_id, class_id=class_id, teacher_id=teacher_id, attendance_date=attendance_date, status=status
        )

    def upsert_many(self, *, teacher_id: int, entries: list[AttendanceWrite]) -> int:
        if self.fail_bulk:
            raise SyncError("Attendance not synced; no records were saved")
        for e in entries:
            self._write(
                student_id=e.student_id,
                class_id=e.class_id,
                teacher_id=teacher_id,
                attendance_date=e.attendance_date,
                status=e.status,
            )
        return len(entries)

    def _filter(self, *, student_id=None, class_id=None, start=None, end=None):
        out = []
        for r in self._by_key.values():
            if student_id is not None and r.student_id != int(student_id):
                continue
            if class_id is not None and r.class_id != int(class_id):
                continue
            if start is not None and r.attendance_date < start:
                continue
            if end is not None and r.attendance_date > end:
                continue
            out.append(r)
        return out

    def list_records(self, *, student_id=None, class_id=None, start=None, end=None):
        items = self._filter(student_id=student_id, class_id=class_id, start=start, end=end)
        return sorted(items, key=lambda r: (r.attendance_date, r.attendance_id))

    def list_rows(self, *, student_id=None, class_id=None, start=None, end=None):
        rows = []
        for r in self._filter(student_id=student_id, class_id=class_id, start=start, end=end):
            s = self._students.get_by_id(r.student_id)
            c = self._classes.get_by_id(r.class_id)
            t = self._users.get_by_id(r.teacher_id) if r.teacher_id else None
            rows.append(
                AttendanceRow(
                    attendance_id=r.attendance_id,
                    student_id=r.student_id,
                    student_name=s.full_name if s else "Unknown",
                    roll_no=s.roll_no if s else "",
                    class_id=r.class_id,
                    class_name=c.display_name if c else "",
                    teacher_id=r.teacher_id,
                    teacher_name=t.full_name if t else None,
                    attendance_date=r.attendance_date,
                    status=r.status,
                )
            )
        rows.sort(key=lambda x: x.roll_no)
        rows.sort(key=lambda x: x.attendance_date, reverse=True)
        return rows


@dataclass
class School:
    users: InMemoryUsers = field(default_factory=InMemoryUsers)
    classes: InMemoryClasses = field(default_factory=InMemoryClasses)
    students: InMemoryStudents = field(default_factory=InMemoryStudents)
    settings: InMemorySettings = field(default_factory=InMemorySettings)
    attendance: InMemoryAttendance = None  # type: ignore[assignment]

    def __post_init__(self):
        if self.attendance is None:
            self.attendance = InMemoryAttendance(self.students, self.classes, self.users)

    def add_user(self, user_id: int, role: Role, *, full_name=None, email=None, password_hash="x", is_active=True):
        u = User(
            user_id=user_id,
            full_name=full_name or f"User {user_id}",
            email=email or f"user{user_id}@school.test",
            password_hash=password_hash,
            role=role,
            is_active=is_active,
        )
        self.users.by_id[user_id] = u
        return u

    def add_class(self, class_id: int, *, name="Grade 10", section="A", teacher_id=None, subject_teachers=None):
        c = SchoolClass(
            class_id=class_id,
            name=name,
            section=section,
            subjects=("Mathematics", "English"),
            academic_year="2025-2026",
            teacher_id=teacher_id,
            subject_teachers=subject_teachers or {},
        )
        self.classes.by_id[class_id] = c
        return c

    def add_student(self, student_id: int, *, class_id: int, roll_no: str, user_id=None, full_name=None, is_active=True):
        s = Student(
            student_id=student_id,
            user_id=user_id,
            full_name=full_name or f"Student {student_id}",
            roll_no=roll_no,
            class_id=class_id,
            admission_date=date(2025, 4, 1),
            is_active=is_active,
        )
        self.students.by_id[student_id] = s
        return s

    def record(self, student_id: int, class_id: int, day: date, status: AttendanceStatus, *, teacher_id=2):
        """Write straight to the ledger, bypassing the edit window."""
        return self.attendance.upsert(
            student_id=student_id, class_id=class_id, teacher_id=teacher_id, attendance_date=day, status=status
        )

    def attendance_service(self, *, edit_window_hours: int = 48) -> AttendanceService:
        return AttendanceService(self.attendance, self.students, self.classes, edit_window_hours=edit_window_hours)

    def analytics_service(self) -> AttendanceAnalyticsService:
        return AttendanceAnalyticsService(self.attendance, self.students, self.classes, self.settings)

    def report_service(self) -> ReportService:
        return ReportService(self.attendance, self.students, self.classes, self.users, self.analytics_service())

    def settings_service(self) -> SettingsService:
        return SettingsService(self.settings)

    def auth_service(self) -> AuthService:
        return AuthService(self.users)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def school() -> School:
    """Admin 1, teachers 2 and 3, class 10 (teacher 2) and 11 (teacher 3).

    Students 100 (user 4, roll 001) and 101 (user 5, roll 002) are in class 10.
    """

    s = School()
    s.add_user(1, Role.ADMIN, full_name="Admin")
    s.add_user(2, Role.TEACHER, full_name="Ms. Teacher")
    s.add_user(3, Role.TEACHER, full_name="Mr. Other")
    s.add_user(4, Role.STUDENT, full_name="Alice")
    s.add_user(5, Role.STUDENT, full_name="Bob")

    s.add_class(10, name="Grade 10", section="A", teacher_id=2)
    s.add_class(11, name="Grade 9", section="B", teacher_id=3)

    s.add_student(100, class_id=10, roll_no="001", user_id=4, full_name="Alice")
    s.add_student(101, class_id=10, roll_no="002", user_id=5, full_name="Bob")
    return s
