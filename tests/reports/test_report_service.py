from __future__ import annotations

from datetime import date

import pytest

from src.attendsync.attendsync.core.enums import AttendanceStatus, Role
from src.attendsync.attendsync.core.exceptions import AuthorizationError, NotFoundError, ValidationError

P = AttendanceStatus.PRESENT
A = AttendanceStatus.ABSENT
TODAY = date(2026, 3, 10)


def _seed(school):
    school.record(100, 10, date(2026, 3, 9), P)
    school.record(101, 10, date(2026, 3, 9), A)
    school.record(100, 10, TODAY, P)
    school.record(101, 10, TODAY, P)


def test_system_overview_totals_and_sorting(school):
    _seed(school)

    out = school.report_service().system_overview(today=TODAY)

    totals = out["totals"]
    assert totals["total_users"] == 5
    assert totals["users_by_role"] == {"ADMIN": 1, "TEACHER": 2, "STUDENT": 2}
    assert totals["total_classes"] == 2
    assert totals["total_students"] == 2
    assert totals["total_attendance_records"] == 4
    assert totals["overall_attendance_rate"] == 75

    assert [c["class_name"] for c in out["class_stats"]] == ["Grade 10 - A", "Grade 9 - B"]
    grade10 = out["class_stats"][0]
    assert grade10["average_attendance"] == 75
    assert grade10["present_today"] == 2

    assert [p.month for p in out["monthly_trend"]][-1] == "2026-03"
    # Bob sits at 50% against the default 75% threshold
    assert [e.student_id for e in out["low_attendance"]] == [101]


def test_class_detail_for_class_teacher(school):
    _seed(school)

    out = school.report_service().class_detail(10, current_role=Role.TEACHER, current_user_id=2, today=TODAY)

    assert out["class"]["display_name"] == "Grade 10 - A"
    assert out["stats"].average_attendance == 75
    assert (out["today"].present_today, out["today"].absent_today) == (2, 0)
    assert [s["roll_no"] for s in out["students"]] == ["001", "002"]
    assert out["students"][1]["attendance_percentage"] == 50
    dates = [r.attendance_date for r in out["attendance"]]
    assert dates == sorted(dates, reverse=True)


def test_class_detail_allows_subject_teacher(school):
    school.add_class(12, name="Grade 8", section="C", teacher_id=2, subject_teachers={"Physics": 3})

    out = school.report_service().class_detail(12, current_role=Role.TEACHER, current_user_id=3, today=TODAY)

    assert out["class"]["class_id"] == 12


@pytest.mark.parametrize("role, user_id", [(Role.TEACHER, 3), (Role.STUDENT, 4)])
def test_class_detail_denied(school, role, user_id):
    with pytest.raises(AuthorizationError):
        school.report_service().class_detail(10, current_role=role, current_user_id=user_id)


def test_class_detail_unknown_class(school):
    with pytest.raises(NotFoundError):
        school.report_service().class_detail(404, current_role=Role.ADMIN, current_user_id=1)


def test_student_detail_own_record(school):
    school.record(100, 10, date(2026, 3, 7), P)
    school.record(100, 10, date(2026, 3, 8), P)
    school.record(100, 10, date(2026, 3, 9), A)

    out = school.report_service().student_detail(100, current_role=Role.STUDENT, current_user_id=4)

    assert out["student"]["class_name"] == "Grade 10 - A"
    assert out["statistics"].total_classes == 3
    assert out["statistics"].attendance_percentage == 66.67
    assert [r["date"] for r in out["attendance"]] == [date(2026, 3, 9), date(2026, 3, 8), date(2026, 3, 7)]
    assert out["attendance"][0]["teacher_name"] == "Ms. Teacher"


def test_student_detail_date_range(school):
    school.record(100, 10, date(2026, 3, 1), P)
    school.record(100, 10, date(2026, 3, 5), A)

    out = school.report_service().student_detail(
        100, current_role=Role.ADMIN, current_user_id=1, start="2026-03-02", end="2026-03-10"
    )

    assert out["statistics"].total_classes == 1

    with pytest.raises(ValidationError):
        school.report_service().student_detail(
            100, current_role=Role.ADMIN, current_user_id=1, start="2026-03-10", end="2026-03-02"
        )


@pytest.mark.parametrize("role, user_id", [(Role.STUDENT, 5), (Role.TEACHER, 3)])
def test_student_detail_denied(school, role, user_id):
    with pytest.raises(AuthorizationError):
        school.report_service().student_detail(100, current_role=role, current_user_id=user_id)


def test_student_detail_class_teacher_allowed(school):
    out = school.report_service().student_detail(101, current_role=Role.TEACHER, current_user_id=2)

    assert out["student"]["name"] == "Bob"


def test_my_detail_without_profile(school):
    with pytest.raises(NotFoundError):
        school.report_service().my_detail(current_user_id=1)


def test_student_percentage_scoping(school):
    svc = school.report_service()
    school.record(100, 10, TODAY, P)

    assert svc.student_percentage(100, current_role=Role.STUDENT, current_user_id=4).percentage == 100
    assert svc.student_percentage(999, current_role=Role.ADMIN, current_user_id=1).percentage == 0

    with pytest.raises(AuthorizationError):
        svc.student_percentage(100, current_role=Role.STUDENT, current_user_id=5)


def test_history_csv_rows(school):
    school.record(100, 10, date(2026, 3, 9), A)
    school.record(100, 10, TODAY, P)

    student, rows = school.report_service().student_history_csv_rows(current_user_id=4)

    assert student.student_id == 100
    assert rows[0] == {
        "no": 1,
        "date": "2026-03-10",
        "day": "Tue",
        "status": "PRESENT",
        "class_name": "Grade 10 - A",
        "teacher_name": "Ms. Teacher",
    }
    assert rows[1]["status"] == "ABSENT"


def test_authorize_class_scopes_teachers(school):
    svc = school.report_service()

    assert svc.authorize_class("10", current_role=Role.TEACHER, current_user_id=2).class_id == 10
    assert svc.authorize_class(11, current_role=Role.ADMIN, current_user_id=1).class_id == 11
    with pytest.raises(AuthorizationError):
        svc.authorize_class(10, current_role=Role.TEACHER, current_user_id=3)
    with pytest.raises(NotFoundError):
        svc.authorize_class(404, current_role=Role.ADMIN, current_user_id=1)
    with pytest.raises(ValidationError):
        svc.authorize_class(None, current_role=Role.ADMIN, current_user_id=1)
