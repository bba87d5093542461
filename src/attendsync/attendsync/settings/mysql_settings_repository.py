from __future__ import annotations

from ..core.constants import SETTINGS_ROW_ID
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SystemSettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> SystemSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT attendance_threshold, institute_name FROM system_settings WHERE settings_id=%s",
                (SETTINGS_ROW_ID,),
            )
            r = fetchone(cur)
            if not r:
                raise NotFoundError("System settings row is missing; apply database/schema.sql")
            return SystemSettings(
                attendance_threshold=float(r["attendance_threshold"]),
                institute_name=r.get("institute_name") or SystemSettings.institute_name,
            )

    def update_attendance_threshold(self, threshold: float) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE system_settings SET attendance_threshold=%s WHERE settings_id=%s",
                (float(threshold), SETTINGS_ROW_ID),
            )
            if cur.rowcount > 0:
                return True

            # Unchanged value reports zero affected rows.
            cur.execute("SELECT settings_id FROM system_settings WHERE settings_id=%s", (SETTINGS_ROW_ID,))
            return fetchone(cur) is not None
