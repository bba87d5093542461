from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..common.http import current_role, current_user_id, login_required, ok, role_required
from ..core.constants import DEFAULT_TREND_MONTHS
from ..core.enums import Role
from ..container import Container

_HISTORY_FIELDS = ["no", "date", "day", "status", "class_name", "teacher_name"]


def register(app: Flask, container: Container) -> None:
    def _write_history_csv(*, rows: list[dict], filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=_HISTORY_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    @app.route(
        "/api/analytics/student/<int:student_id>/percentage",
        methods=["GET"],
        endpoint="analytics_student_percentage",
    )
    @login_required
    def analytics_student_percentage(student_id: int):
        data = container.report_service.student_percentage(
            student_id,
            current_role=current_role(),
            current_user_id=current_user_id(),
        )
        return ok(data, "Attendance percentage calculated")

    def _readable_class_id(class_id):
        """Class id the caller may read, or 403 for a teacher outside it."""
        cls = container.report_service.authorize_class(
            class_id,
            current_role=current_role(),
            current_user_id=current_user_id(),
        )
        return cls.class_id

    @app.route("/api/analytics/class/<int:class_id>/average", methods=["GET"], endpoint="analytics_class_average")
    @role_required(Role.TEACHER, Role.ADMIN)
    def analytics_class_average(class_id: int):
        cid = _readable_class_id(class_id)
        return ok(container.analytics_service.class_average(cid), "Class average calculated")

    @app.route("/api/analytics/class/<int:class_id>/today", methods=["GET"], endpoint="analytics_class_today")
    @role_required(Role.TEACHER, Role.ADMIN)
    def analytics_class_today(class_id: int):
        cid = _readable_class_id(class_id)
        return ok(container.analytics_service.today_attendance(cid), "Today's attendance fetched")

    @app.route("/api/analytics/class/report", methods=["GET"], endpoint="analytics_class_report")
    @role_required(Role.TEACHER, Role.ADMIN)
    def analytics_class_report():
        rows = container.analytics_service.class_report(
            class_id=_readable_class_id(request.args.get("class_id")),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return ok(rows, "Class report generated")

    @app.route(
        "/api/analytics/class/monthly-summary",
        methods=["GET"],
        endpoint="analytics_class_monthly_summary",
    )
    @role_required(Role.TEACHER, Role.ADMIN)
    def analytics_class_monthly_summary():
        today = now_local().date()
        rows = container.analytics_service.monthly_class_summary(
            class_id=_readable_class_id(request.args.get("class_id")),
            year=request.args.get("year") or today.year,
            month=request.args.get("month") or today.month,
        )
        return ok(rows, "Monthly summary generated")

    @app.route("/api/analytics/trend", methods=["GET"], endpoint="analytics_trend")
    @role_required(Role.TEACHER, Role.ADMIN)
    def analytics_trend():
        today = now_local().date()
        class_id = request.args.get("class_id") or None
        points = container.analytics_service.monthly_trend(
            year=request.args.get("year") or today.year,
            month=request.args.get("month") or today.month,
            class_id=_readable_class_id(class_id) if class_id else None,
            months=request.args.get("months") or DEFAULT_TREND_MONTHS,
        )
        return ok(points, "Monthly trend generated")

    @app.route("/api/analytics/low-attendance", methods=["GET"], endpoint="analytics_low_attendance")
    @role_required(Role.TEACHER, Role.ADMIN)
    def analytics_low_attendance():
        threshold = request.args.get("threshold")
        roster = container.analytics_service.low_attendance_roster(threshold if threshold else None)
        return ok(roster, "Low attendance students fetched")

    # ------------------------------------------------------------------
    # Dashboards
    # ------------------------------------------------------------------

    @app.route("/api/reports/overview", methods=["GET"], endpoint="report_overview")
    @role_required(Role.ADMIN)
    def report_overview():
        return ok(container.report_service.system_overview(), "System overview generated")

    @app.route("/api/reports/class/<int:class_id>", methods=["GET"], endpoint="report_class")
    @role_required(Role.TEACHER, Role.ADMIN)
    def report_class(class_id: int):
        data = container.report_service.class_detail(
            class_id,
            current_role=current_role(),
            current_user_id=current_user_id(),
        )
        return ok(data, "Class report generated")

    @app.route("/api/reports/student/<int:student_id>", methods=["GET"], endpoint="report_student")
    @login_required
    def report_student(student_id: int):
        data = container.report_service.student_detail(
            student_id,
            current_role=current_role(),
            current_user_id=current_user_id(),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return ok(data, "Student report generated")

    @app.route("/api/reports/me", methods=["GET"], endpoint="report_me")
    @role_required(Role.STUDENT)
    def report_me():
        data = container.report_service.my_detail(
            current_user_id=current_user_id(),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return ok(data, "Attendance history fetched")

    @app.route("/api/reports/me.csv", methods=["GET"], endpoint="report_me_csv")
    @role_required(Role.STUDENT)
    def report_me_csv():
        student, rows = container.report_service.student_history_csv_rows(current_user_id=current_user_id())
        filename = f"attendance_{student.roll_no}_{now_local().strftime('%Y%m%d')}.csv"
        return _write_history_csv(rows=rows, filename=filename)
