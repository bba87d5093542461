from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass(frozen=True)
class SchoolClass:
    """Domain entity: a class (name + section) for one academic year.

    A class has at most one primary teacher plus optional per-subject
    teacher assignments (subject -> teacher_id).
    """

    class_id: int
    name: str
    section: str
    subjects: tuple[str, ...]
    academic_year: str
    teacher_id: Optional[int] = None
    schedule: Optional[str] = None
    subject_teachers: Mapping[str, int] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return f"{self.name} - {self.section}" if self.section else self.name

    def is_taught_by(self, teacher_id: int) -> bool:
        if self.teacher_id is not None and int(self.teacher_id) == int(teacher_id):
            return True
        return int(teacher_id) in {int(t) for t in self.subject_teachers.values()}
