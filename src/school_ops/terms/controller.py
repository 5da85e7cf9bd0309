from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import coerce_date
from ..common.http import current_user_id, json_body, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    admin_roles = roles_required(Role.OFFICE, Role.PRINCIPAL)

    @app.route("/api/terms", methods=["POST"], endpoint="api_terms_create")
    @admin_roles
    def create_term():
        data = json_body()
        if not data.get("start_date") or not data.get("end_date"):
            raise ValidationError("start_date and end_date are required")

        term = container.term_service.create_term(
            name=str(data.get("name") or ""),
            start_date=coerce_date(data["start_date"]),
            end_date=coerce_date(data["end_date"]),
            activate=bool(data.get("is_active", False)),
            actor_id=current_user_id(),
        )
        return jsonify({"success": True, "term": term.to_dict()}), 201

    @app.route("/api/terms/<int:term_id>/activate", methods=["POST"], endpoint="api_terms_activate")
    @admin_roles
    def activate_term(term_id: int):
        term = container.term_service.activate(term_id, actor_id=current_user_id())
        return jsonify({"success": True, "term": term.to_dict()})

    @app.route("/api/terms/active", methods=["GET"], endpoint="api_terms_active")
    @admin_roles
    def active_term():
        term = container.term_service.require_active_term()
        return jsonify({"term": term.to_dict()})
