from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, session

from ..common.http import json_body, login_required, ok
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)

        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        logger.info("User %s logged in as %s", s_user.user_id, s_user.role.value)
        return ok(s_user, "Logged in")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(None, "Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return ok(
            {"user_id": session["user_id"], "full_name": session.get("name"), "role": session.get("role")},
            "Current user",
        )
