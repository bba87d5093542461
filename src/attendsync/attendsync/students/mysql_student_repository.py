from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Student
from .repository import StudentRepository

_SELECT = """
    SELECT s.student_id, s.user_id, COALESCE(u.full_name, 'Unknown') AS full_name,
           s.roll_no, s.class_id, s.admission_date, s.parent_name, s.parent_phone, s.is_active
    FROM students s
    LEFT JOIN users u ON u.user_id = s.user_id
"""


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        full_name=r["full_name"],
        roll_no=str(r["roll_no"]),
        class_id=int(r["class_id"]),
        admission_date=r["admission_date"],
        parent_name=r.get("parent_name"),
        parent_phone=r.get("parent_phone"),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE s.student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE s.user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_by_class(self, class_id: int, *, active_only: bool = True) -> Sequence[Student]:
        clauses = ["s.class_id=%s"]
        if active_only:
            clauses.append("s.is_active=1")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE " + " AND ".join(clauses) + " ORDER BY s.roll_no ASC",
                (int(class_id),),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY s.class_id ASC, s.roll_no ASC")
            return [_to_student(r) for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM students")
            r = fetchone(cur)
            return int(r["n"]) if r else 0
