from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_user_id, json_body, login_required, roles_required, weekday_map_to_dict
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    admin_roles = roles_required(Role.OFFICE, Role.PRINCIPAL)

    @app.route("/api/timetable/slots", methods=["POST"], endpoint="api_timetable_assign")
    @admin_roles
    def assign_slot():
        data = json_body()
        detail = container.timetable_service.assign_slot(
            section_id=data.get("section_id"),
            subject_id=data.get("subject_id"),
            teacher_id=data.get("teacher_id"),
            weekday=data.get("day_of_week"),
            period_id=data.get("period_id"),
            term_id=data.get("term_id"),
            actor_id=current_user_id(),
        )
        return jsonify({"success": True, "slot": detail.to_dict()}), 201

    @app.route("/api/timetable/slots/<int:slot_id>", methods=["DELETE"], endpoint="api_timetable_remove")
    @admin_roles
    def remove_slot(slot_id: int):
        container.timetable_service.remove_slot(slot_id=slot_id, actor_id=current_user_id())
        return jsonify({"success": True})

    @app.route("/api/timetable/slots/<int:slot_id>", methods=["PUT"], endpoint="api_timetable_replace")
    @admin_roles
    def replace_slot(slot_id: int):
        data = json_body()
        detail = container.timetable_service.replace_slot(
            slot_id=slot_id,
            section_id=data.get("section_id"),
            subject_id=data.get("subject_id"),
            teacher_id=data.get("teacher_id"),
            weekday=data.get("day_of_week"),
            period_id=data.get("period_id"),
            actor_id=current_user_id(),
        )
        return jsonify({"success": True, "slot": detail.to_dict()})

    @app.route("/api/timetable/section/<int:section_id>", methods=["GET"], endpoint="api_timetable_section")
    @login_required
    def section_timetable(section_id: int):
        grouped = container.timetable_service.lookup_for_section(section_id, term_id=request.args.get("term_id"))
        return jsonify({"section_id": section_id, "timetable": weekday_map_to_dict(grouped)})

    @app.route("/api/timetable/teacher/<int:teacher_id>", methods=["GET"], endpoint="api_timetable_teacher")
    @login_required
    def teacher_timetable(teacher_id: int):
        grouped = container.timetable_service.lookup_for_teacher(teacher_id, term_id=request.args.get("term_id"))
        return jsonify({"teacher_id": teacher_id, "timetable": weekday_map_to_dict(grouped)})
