from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_user_id, json_body, login_required, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/class-sessions/open", methods=["POST"], endpoint="api_class_sessions_open")
    @roles_required(Role.TEACHER, Role.PRINCIPAL)
    def open_session():
        data = json_body()
        if not data.get("date"):
            raise ValidationError("date is required")

        opened = container.class_session_service.open_session(
            teacher_id=current_user_id(),
            section_id=data.get("section_id"),
            subject_id=data.get("subject_id"),
            period_id=data.get("period_id"),
            session_date=data["date"],
        )
        return jsonify(opened.to_dict()), 201 if opened.created else 200

    @app.route("/api/class-sessions/current-period", methods=["GET"], endpoint="api_class_sessions_current_period")
    @login_required
    def current_period():
        period = container.class_session_service.current_period()
        return jsonify({"period": period.to_dict() if period else None})

    @app.route("/api/class-sessions/<int:class_session_id>", methods=["GET"], endpoint="api_class_sessions_show")
    @login_required
    def show_session(class_session_id: int):
        detail = container.class_session_service.get_session(class_session_id)
        return jsonify({"session": detail.to_dict()})
