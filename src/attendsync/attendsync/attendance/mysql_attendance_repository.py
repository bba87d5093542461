from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import SyncError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceRow, AttendanceWrite
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = "attendance_id, student_id, class_id, teacher_id, attendance_date, status, created_at, updated_at"

_UPSERT_SQL = """
    INSERT INTO attendance_records(student_id, class_id, teacher_id, attendance_date, status)
    VALUES(%s,%s,%s,%s,%s)
    ON DUPLICATE KEY UPDATE status=VALUES(status), teacher_id=VALUES(teacher_id)
"""

# Flip happens inside the storage engine so concurrent toggles on one key serialize.
_TOGGLE_SQL = """
    INSERT INTO attendance_records(student_id, class_id, teacher_id, attendance_date, status)
    VALUES(%s,%s,%s,%s,'PRESENT')
    ON DUPLICATE KEY UPDATE
        status=IF(status='PRESENT','ABSENT','PRESENT'),
        teacher_id=VALUES(teacher_id)
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        class_id=int(r["class_id"]),
        teacher_id=int(r["teacher_id"]) if r.get("teacher_id") is not None else None,
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _where(
    alias: str,
    *,
    student_id: Optional[int],
    class_id: Optional[int],
    start: Optional[date],
    end: Optional[date],
) -> tuple[str, tuple]:
    clauses: list[str] = []
    params: list[object] = []

    if student_id is not None:
        clauses.append(f"{alias}.student_id=%s")
        params.append(int(student_id))
    if class_id is not None:
        clauses.append(f"{alias}.class_id=%s")
        params.append(int(class_id))
    if start is not None:
        clauses.append(f"{alias}.attendance_date>=%s")
        params.append(start)
    if end is not None:
        clauses.append(f"{alias}.attendance_date<=%s")
        params.append(end)

    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, tuple(params)


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _select_one(cur, *, student_id: int, class_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        cur.execute(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM attendance_records
            WHERE student_id=%s AND class_id=%s AND attendance_date=%s
            """,
            (int(student_id), int(class_id), attendance_date),
        )
        r = fetchone(cur)
        return _to_record(r) if r else None

    def upsert(
        self,
        *,
        student_id: int,
        class_id: int,
        teacher_id: int,
        attendance_date: date,
        status: AttendanceStatus,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _UPSERT_SQL,
                (int(student_id), int(class_id), int(teacher_id), attendance_date, status.value),
            )
            rec = self._select_one(cur, student_id=student_id, class_id=class_id, attendance_date=attendance_date)
            if rec is None:
                raise RuntimeError("Upserted attendance row could not be read back")
            return rec

    def toggle(self, *, student_id: int, class_id: int, teacher_id: int, attendance_date: date) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_TOGGLE_SQL, (int(student_id), int(class_id), int(teacher_id), attendance_date))
            rec = self._select_one(cur, student_id=student_id, class_id=class_id, attendance_date=attendance_date)
            if rec is None:
                raise RuntimeError("Toggled attendance row could not be read back")
            return rec

    def upsert_many(self, *, teacher_id: int, entries: Sequence[AttendanceWrite]) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                for e in entries:
                    cur.execute(
                        _UPSERT_SQL,
                        (int(e.student_id), int(e.class_id), int(teacher_id), e.attendance_date, e.status.value),
                    )
                return len(entries)
        except mysql.connector.Error as e:
            logger.warning("Bulk attendance sync rolled back: %s", e)
            raise SyncError("Attendance not synced; no records were saved") from e

    def list_records(
        self,
        *,
        student_id: Optional[int] = None,
        class_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        where, params = _where("ar", student_id=student_id, class_id=class_id, start=start, end=end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records ar
                {where}
                ORDER BY ar.attendance_date ASC, ar.attendance_id ASC
                """,
                params,
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_rows(
        self,
        *,
        student_id: Optional[int] = None,
        class_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRow]:
        where, params = _where("ar", student_id=student_id, class_id=class_id, start=start, end=end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    ar.attendance_id, ar.student_id, ar.class_id, ar.teacher_id,
                    ar.attendance_date, ar.status,
                    COALESCE(su.full_name, 'Unknown') AS student_name, s.roll_no,
                    CONCAT(c.name, IF(c.section = '', '', CONCAT(' - ', c.section))) AS class_name,
                    tu.full_name AS teacher_name
                FROM attendance_records ar
                JOIN students s ON s.student_id = ar.student_id
                LEFT JOIN users su ON su.user_id = s.user_id
                JOIN classes c ON c.class_id = ar.class_id
                LEFT JOIN users tu ON tu.user_id = ar.teacher_id
                {where}
                ORDER BY ar.attendance_date DESC, s.roll_no ASC
                """,
                params,
            )
            return [
                AttendanceRow(
                    attendance_id=int(r["attendance_id"]),
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    roll_no=str(r["roll_no"]),
                    class_id=int(r["class_id"]),
                    class_name=r["class_name"],
                    teacher_id=int(r["teacher_id"]) if r.get("teacher_id") is not None else None,
                    teacher_name=r.get("teacher_name"),
                    attendance_date=r["attendance_date"],
                    status=AttendanceStatus(r["status"]),
                )
                for r in fetchall(cur)
            ]
