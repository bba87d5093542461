from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import DEFAULT_ATTENDANCE_THRESHOLD


@dataclass(frozen=True)
class SystemSettings:
    """System-wide settings (single seeded row)."""

    attendance_threshold: float = DEFAULT_ATTENDANCE_THRESHOLD
    institute_name: str = "AttendSync Institute"
