"""
routes/profile.py — Profile route handlers.

Endpoints (base url_prefix=/api/v1/profile):
  GET    /profile  → 200
  PUT    /profile  → 201 on first save, 200 on update
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from splitwibe.app.extensions import db
from splitwibe.app.middleware.auth_middleware import require_auth
from splitwibe.app.schemas.profile_schema import UpsertProfileSchema
from splitwibe.app.services import profile_service

profile_bp = Blueprint("profile", __name__)


@profile_bp.route("", methods=["GET"])
@require_auth
def get_profile():
    """GET /profile — Return the caller's profile."""
    result = profile_service.get_profile(
        user_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@profile_bp.route("", methods=["PUT"])
@require_auth
def upsert_profile():
    """PUT /profile — Create or update the caller's profile."""
    data = UpsertProfileSchema().load(request.get_json(force=True) or {})
    result, created = profile_service.upsert_profile(
        user_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201 if created else 200
