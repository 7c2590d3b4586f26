"""
routes/groups.py — Group and membership route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/groups):
  POST   /groups              → 201  create group (caller becomes first member)
  GET    /groups              → 200  list caller's groups
  POST   /groups/join         → 201  join a group by invite code
  GET    /groups/:id          → 200  get group + members + total spend
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from splitwibe.app.extensions import db
from splitwibe.app.middleware.auth_middleware import require_auth
from splitwibe.app.schemas.group_schema import CreateGroupSchema, JoinGroupSchema
from splitwibe.app.services import group_service

groups_bp = Blueprint("groups", __name__)


@groups_bp.route("/", methods=["POST"])
@require_auth
def create_group():
    """POST /groups — Create a new group with a fresh invite code."""
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    result = group_service.create_group(
        name=data["name"],
        description=data.get("description"),
        creator_id=g.user_id,
        session=db.session,
        max_attempts=current_app.config["INVITE_CODE_MAX_ATTEMPTS"],
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@groups_bp.route("/", methods=["GET"])
@require_auth
def list_groups():
    """GET /groups — List all groups the authenticated user belongs to."""
    result = group_service.list_groups(
        user_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@groups_bp.route("/join", methods=["POST"])
@require_auth
def join_group():
    """POST /groups/join — Join the group that owns the given invite code."""
    data = JoinGroupSchema().load(request.get_json(force=True) or {})
    result = group_service.join_group(
        invite_code=data["invite_code"],
        user_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@groups_bp.route("/<int:group_id>", methods=["GET"])
@require_auth
def get_group(group_id: int):
    """GET /groups/:id — Get group details with member list. Caller must be member."""
    result = group_service.get_group(
        group_id=group_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
