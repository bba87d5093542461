from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json_column
from .model import SchoolClass
from .repository import ClassRepository

_COLUMNS = "class_id, name, section, subjects, academic_year, teacher_id, schedule, subject_teachers"


def _to_class(r: dict) -> SchoolClass:
    subject_teachers = load_json_column(r.get("subject_teachers"), {})
    return SchoolClass(
        class_id=int(r["class_id"]),
        name=r["name"],
        section=r.get("section") or "",
        subjects=tuple(load_json_column(r.get("subjects"), [])),
        academic_year=r.get("academic_year") or "",
        teacher_id=int(r["teacher_id"]) if r.get("teacher_id") is not None else None,
        schedule=r.get("schedule"),
        subject_teachers={str(k): int(v) for k, v in subject_teachers.items()},
    )


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes WHERE class_id=%s", (int(class_id),))
            r = fetchone(cur)
            return _to_class(r) if r else None

    def list_all(self) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes ORDER BY name ASC, section ASC")
            return [_to_class(r) for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM classes")
            r = fetchone(cur)
            return int(r["n"]) if r else 0
