from __future__ import annotations

from dataclasses import dataclass

from .attendance.analytics import AttendanceAnalyticsService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .classes.mysql_class_repository import MySQLClassRepository
from .core.constants import EDIT_WINDOW_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import ReportService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.service import SettingsService
from .students.mysql_student_repository import MySQLStudentRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    students_repo: MySQLStudentRepository
    classes_repo: MySQLClassRepository
    attendance_repo: MySQLAttendanceRepository
    settings_repo: MySQLSettingsRepository

    auth_service: AuthService
    attendance_service: AttendanceService
    analytics_service: AttendanceAnalyticsService
    report_service: ReportService
    settings_service: SettingsService


def build_container(*, db_config: dict, edit_window_hours: int = EDIT_WINDOW_HOURS) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    students_repo = MySQLStudentRepository(conn)
    classes_repo = MySQLClassRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    settings_repo = MySQLSettingsRepository(conn)

    auth_service = AuthService(users_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        students_repo,
        classes_repo,
        edit_window_hours=edit_window_hours,
    )
    analytics_service = AttendanceAnalyticsService(attendance_repo, students_repo, classes_repo, settings_repo)
    report_service = ReportService(attendance_repo, students_repo, classes_repo, users_repo, analytics_service)
    settings_service = SettingsService(settings_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        students_repo=students_repo,
        classes_repo=classes_repo,
        attendance_repo=attendance_repo,
        settings_repo=settings_repo,
        auth_service=auth_service,
        attendance_service=attendance_service,
        analytics_service=analytics_service,
        report_service=report_service,
        settings_service=settings_service,
    )
