from __future__ import annotations

import logging

from ..common.validators import require_percentage
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import SystemSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, settings: SettingsRepository):
        self._settings = settings

    def get(self) -> SystemSettings:
        return self._settings.get()

    def update_attendance_threshold(self, *, current_role: Role, threshold) -> SystemSettings:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can change settings")

        value = require_percentage(threshold, "Attendance threshold")
        if not self._settings.update_attendance_threshold(value):
            raise NotFoundError("System settings row is missing; apply database/schema.sql")

        logger.info("Attendance threshold set to %s", value)
        return self._settings.get()
