from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_body, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    teacher_roles = roles_required(Role.TEACHER, Role.PRINCIPAL)

    @app.route("/api/attendance/sessions", methods=["POST"], endpoint="api_attendance_create")
    @teacher_roles
    def create_or_get_session():
        data = json_body()
        if not data.get("date"):
            raise ValidationError("date is required")

        result = container.attendance_service.create_or_get_session(
            section_id=data.get("section_id"),
            session_date=data["date"],
            teacher_id=current_user_id(),
        )
        return jsonify(result.to_dict()), 201 if result.created else 200

    @app.route(
        "/api/attendance/sessions/<int:attendance_session_id>/submit",
        methods=["POST"],
        endpoint="api_attendance_submit",
    )
    @teacher_roles
    def submit_session(attendance_session_id: int):
        data = json_body()
        summary = container.attendance_service.submit_session(
            attendance_session_id=attendance_session_id,
            records=data.get("records"),
            teacher_id=current_user_id(),
        )
        return jsonify({"success": True, "summary": summary.to_dict()})

    @app.route("/api/attendance/sessions/<int:attendance_session_id>", methods=["GET"], endpoint="api_attendance_show")
    @teacher_roles
    def show_session(attendance_session_id: int):
        result = container.attendance_service.get_session_with_roster(attendance_session_id)
        return jsonify(result.to_dict())

    @app.route("/api/attendance/section/<int:section_id>", methods=["GET"], endpoint="api_attendance_section")
    @teacher_roles
    def section_attendance(section_id: int):
        day = request.args.get("date")
        if not day:
            raise ValidationError("date query parameter is required")
        result = container.attendance_service.get_for_section(section_id=section_id, session_date=day)
        return jsonify(result.to_dict())
