from __future__ import annotations

from flask import Flask

from ..common.http import current_role, json_body, login_required, ok, role_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/settings", methods=["GET"], endpoint="get_settings")
    @login_required
    def get_settings():
        return ok(container.settings_service.get(), "Settings fetched")

    @app.route("/api/settings", methods=["PUT"], endpoint="update_settings")
    @role_required(Role.ADMIN)
    def update_settings():
        body = json_body()
        settings = container.settings_service.update_attendance_threshold(
            current_role=current_role(),
            threshold=body.get("attendance_threshold"),
        )
        return ok(settings, "Settings updated")
