from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Student


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        raise NotImplementedError

    def list_by_class(self, class_id: int, *, active_only: bool = True) -> Sequence[Student]:
        """Students of a class ordered by roll number."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
