from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceRow, AttendanceWrite


class AttendanceRepository(Protocol):
    """The attendance ledger.

    Rows are unique on (student_id, class_id, attendance_date) and are never
    deleted in normal flow.
    """

    def upsert(
        self,
        *,
        student_id: int,
        class_id: int,
        teacher_id: int,
        attendance_date: date,
        status: AttendanceStatus,
    ) -> AttendanceRecord:
        """Insert or update the unique row; returns the stored row."""

        raise NotImplementedError

    def toggle(self, *, student_id: int, class_id: int, teacher_id: int, attendance_date: date) -> AttendanceRecord:
        """Flip an existing row, or create it as PRESENT. Atomic per key."""

        raise NotImplementedError

    def upsert_many(self, *, teacher_id: int, entries: Sequence[AttendanceWrite]) -> int:
        """Write all entries in one transaction; all or nothing.

        Raises SyncError when the transaction fails.
        """

        raise NotImplementedError

    def list_records(
        self,
        *,
        student_id: Optional[int] = None,
        class_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_rows(
        self,
        *,
        student_id: Optional[int] = None,
        class_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRow]:
        """Joined rows ordered by date descending."""

        raise NotImplementedError
