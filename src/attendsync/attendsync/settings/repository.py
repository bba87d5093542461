from __future__ import annotations

from typing import Protocol

from .model import SystemSettings


class SettingsRepository(Protocol):
    def get(self) -> SystemSettings:
        """Return the seeded settings row.

        Implementations must not create the row on demand.
        """

        raise NotImplementedError

    def update_attendance_threshold(self, threshold: float) -> bool:
        raise NotImplementedError
