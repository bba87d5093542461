from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any, Optional

from ..attendance.analytics import AttendanceAnalyticsService, summarize
from ..attendance.model import AttendanceRow
from ..attendance.repository import AttendanceRepository
from ..classes.model import SchoolClass
from ..classes.repository import ClassRepository
from ..common.datetime_utils import now_local, parse_attendance_date
from ..common.validators import require_id
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..students.model import Student
from ..students.repository import StudentRepository
from ..users.repository import UserRepository


def _history_row(r: AttendanceRow) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "date": r.attendance_date,
        "status": r.status,
        "class_id": r.class_id,
        "class_name": r.class_name,
        "teacher_id": r.teacher_id,
        "teacher_name": r.teacher_name or "-",
    }


class ReportService:
    """Compose analytics into the dashboard shapes (system, class, student).

    No business rules beyond field selection, sorting and access scoping.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        classes: ClassRepository,
        users: UserRepository,
        analytics: AttendanceAnalyticsService,
    ):
        self._attendance = attendance
        self._students = students
        self._classes = classes
        self._users = users
        self._analytics = analytics

    @staticmethod
    def _authorize_class(cls: SchoolClass, *, current_role: Role, current_user_id: int) -> None:
        if current_role == Role.ADMIN:
            return
        if current_role == Role.TEACHER and cls.is_taught_by(current_user_id):
            return
        raise AuthorizationError("You are not authorized to view this class")

    def _authorize_student(self, student: Student, *, current_role: Role, current_user_id: int) -> None:
        if current_role == Role.ADMIN:
            return
        if current_role == Role.STUDENT:
            if student.user_id is not None and int(student.user_id) == int(current_user_id):
                return
            raise AuthorizationError("Students can only view their own attendance")
        if current_role == Role.TEACHER:
            cls = self._classes.get_by_id(student.class_id)
            if cls and cls.is_taught_by(current_user_id):
                return
            raise AuthorizationError("You can only view students from your classes")
        raise AuthorizationError("Access denied")

    def authorize_class(self, class_id: Any, *, current_role: Role, current_user_id: int) -> SchoolClass:
        """Load a class the caller may read; teachers only see classes they teach."""

        cid = require_id(class_id, "Class ID")
        cls = self._classes.get_by_id(cid)
        if not cls:
            raise NotFoundError("Class not found")
        self._authorize_class(cls, current_role=current_role, current_user_id=current_user_id)
        return cls

    def student_percentage(self, student_id: Any, *, current_role: Role, current_user_id: int):
        """Percentage lookup scoped to what the caller is allowed to see.

        Admins may ask about ids with no student row (0 records -> 0%).
        """

        sid = require_id(student_id, "Student ID")
        if current_role != Role.ADMIN:
            self._authorize_student(
                self._get_student(sid), current_role=current_role, current_user_id=current_user_id
            )
        return self._analytics.student_percentage(sid)

    def system_overview(self, *, today: Optional[date] = None) -> dict:
        today = today or now_local().date()

        users_by_role = self._users.count_by_role()
        classes = self._classes.list_all()
        all_records = summarize(self._attendance.list_records())

        class_stats = []
        for cls in classes:
            avg = self._analytics.class_average(cls.class_id)
            todays = self._analytics.today_attendance(cls.class_id, today=today)
            class_stats.append(
                {
                    "class_id": cls.class_id,
                    "class_name": cls.display_name,
                    "total_students": avg.total_students,
                    "total_classes": avg.total_classes,
                    "average_attendance": avg.average_attendance,
                    "present_today": todays.present_today,
                }
            )
        class_stats.sort(key=lambda x: x["class_name"])

        return {
            "totals": {
                "total_users": sum(users_by_role.values()),
                "users_by_role": {role.value: int(n) for role, n in users_by_role.items()},
                "total_classes": self._classes.count(),
                "total_students": self._students.count(),
                "total_attendance_records": all_records.total_classes,
                "overall_attendance_rate": all_records.attendance_percentage,
            },
            "monthly_trend": self._analytics.monthly_trend(year=today.year, month=today.month),
            "class_stats": class_stats,
            "low_attendance": self._analytics.low_attendance_roster(),
        }

    def class_detail(
        self,
        class_id: Any,
        *,
        current_role: Role,
        current_user_id: int,
        today: Optional[date] = None,
    ) -> dict:
        cls = self.authorize_class(class_id, current_role=current_role, current_user_id=current_user_id)
        cid = cls.class_id

        rows = sorted(self._attendance.list_rows(class_id=cid), key=lambda r: r.attendance_date, reverse=True)

        by_student: dict[int, list[AttendanceRow]] = {}
        for r in rows:
            by_student.setdefault(r.student_id, []).append(r)

        students = []
        for s in self._students.list_by_class(cid, active_only=True):
            stats = summarize(by_student.get(s.student_id, []))
            students.append(
                {
                    "student_id": s.student_id,
                    "roll_no": s.roll_no,
                    "name": s.full_name,
                    **asdict(stats),
                }
            )
        students.sort(key=lambda x: x["roll_no"])

        return {
            "class": {
                "class_id": cls.class_id,
                "name": cls.name,
                "section": cls.section,
                "display_name": cls.display_name,
                "academic_year": cls.academic_year,
                "subjects": list(cls.subjects),
                "teacher_id": cls.teacher_id,
            },
            "stats": self._analytics.class_average(cid),
            "today": self._analytics.today_attendance(cid, today=today),
            "students": students,
            "attendance": rows,
        }

    def _student_rows(self, student: Student, start: Any, end: Any) -> list[AttendanceRow]:
        start_d = parse_attendance_date(start) if start else None
        end_d = parse_attendance_date(end) if end else None
        if start_d and end_d and start_d > end_d:
            raise ValidationError("Start date must not be after end date")
        rows = self._attendance.list_rows(student_id=student.student_id, start=start_d, end=end_d)
        return sorted(rows, key=lambda r: r.attendance_date, reverse=True)

    def _get_student(self, student_id: Any) -> Student:
        sid = require_id(student_id, "Student ID")
        student = self._students.get_by_id(sid)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def student_detail(
        self,
        student_id: Any,
        *,
        current_role: Role,
        current_user_id: int,
        start: Any = None,
        end: Any = None,
    ) -> dict:
        student = self._get_student(student_id)
        self._authorize_student(student, current_role=current_role, current_user_id=current_user_id)

        rows = self._student_rows(student, start, end)
        cls = self._classes.get_by_id(student.class_id)

        return {
            "student": {
                "student_id": student.student_id,
                "name": student.full_name,
                "roll_no": student.roll_no,
                "class_id": student.class_id,
                "class_name": cls.display_name if cls else "-",
                "admission_date": student.admission_date,
                "parent_name": student.parent_name,
                "parent_phone": student.parent_phone,
            },
            "statistics": summarize(rows, places=2),
            "attendance": [_history_row(r) for r in rows],
        }

    def my_detail(self, *, current_user_id: int, start: Any = None, end: Any = None) -> dict:
        student = self._students.get_by_user_id(int(current_user_id))
        if not student:
            raise NotFoundError("Student profile not found")
        return self.student_detail(
            student.student_id,
            current_role=Role.STUDENT,
            current_user_id=current_user_id,
            start=start,
            end=end,
        )

    def student_history_csv_rows(self, *, current_user_id: int) -> tuple[Student, list[dict]]:
        """Flat rows for the student's downloadable attendance history."""

        student = self._students.get_by_user_id(int(current_user_id))
        if not student:
            raise NotFoundError("Student profile not found")

        out: list[dict] = []
        for i, r in enumerate(self._student_rows(student, None, None), start=1):
            out.append(
                {
                    "no": i,
                    "date": r.attendance_date.strftime("%Y-%m-%d"),
                    "day": r.attendance_date.strftime("%a"),
                    "status": r.status.value,
                    "class_name": r.class_name,
                    "teacher_name": r.teacher_name or "-",
                }
            )
        return student, out
