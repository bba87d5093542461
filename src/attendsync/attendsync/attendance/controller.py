from __future__ import annotations

from flask import Flask, request

from ..common.http import current_role, current_user_id, json_body, ok, role_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["POST"], endpoint="mark_attendance")
    @role_required(Role.TEACHER, Role.ADMIN)
    def mark_attendance():
        body = json_body()
        record = container.attendance_service.mark_attendance(
            teacher_id=current_user_id(),
            student_id=body.get("student_id"),
            class_id=body.get("class_id"),
            date=body.get("date"),
            status=body.get("status"),
        )
        return ok(record, "Attendance marked successfully", 201)

    @app.route("/api/attendance/toggle", methods=["PUT"], endpoint="toggle_attendance")
    @role_required(Role.TEACHER, Role.ADMIN)
    def toggle_attendance():
        body = json_body()
        record = container.attendance_service.toggle_attendance(
            teacher_id=current_user_id(),
            student_id=body.get("student_id"),
            class_id=body.get("class_id"),
            date=body.get("date"),
        )
        return ok(record, "Attendance marked successfully", 201)

    @app.route("/api/attendance/bulk-sync", methods=["POST"], endpoint="bulk_sync_attendance")
    @role_required(Role.TEACHER, Role.ADMIN)
    def bulk_sync_attendance():
        body = json_body()
        synced = container.attendance_service.bulk_sync_attendance(
            teacher_id=current_user_id(),
            records=body.get("records"),
        )
        return ok({"synced": synced}, "Attendance synced successfully", 201)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_by_class_and_date")
    @role_required(Role.TEACHER, Role.ADMIN)
    def attendance_by_class_and_date():
        cls = container.report_service.authorize_class(
            request.args.get("class_id"),
            current_role=current_role(),
            current_user_id=current_user_id(),
        )
        rows = container.attendance_service.get_attendance_by_class_and_date(
            class_id=cls.class_id,
            date=request.args.get("date"),
        )
        return ok(rows, "Attendance fetched successfully")

    @app.route("/api/attendance/class/<int:class_id>", methods=["GET"], endpoint="attendance_by_class")
    @role_required(Role.TEACHER, Role.ADMIN)
    def attendance_by_class(class_id: int):
        data = container.report_service.class_detail(
            class_id,
            current_role=current_role(),
            current_user_id=current_user_id(),
        )
        return ok(data, "Class attendance fetched successfully")
