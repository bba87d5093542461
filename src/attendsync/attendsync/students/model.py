from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Domain entity: a student enrolled in one class.

    ``roll_no`` is unique within the class, not globally.
    """

    student_id: int
    user_id: Optional[int]
    full_name: str
    roll_no: str
    class_id: int
    admission_date: date
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    is_active: bool = True
