from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for access checks."""

    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class AttendanceStatus(str, Enum):
    """Status stored on each ledger row."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"

    def flipped(self) -> "AttendanceStatus":
        if self is AttendanceStatus.PRESENT:
            return AttendanceStatus.ABSENT
        return AttendanceStatus.PRESENT
