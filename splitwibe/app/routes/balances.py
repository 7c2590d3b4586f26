"""
routes/balances.py — Balance route handlers.

Layer rules:
  - Call ONE service, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/groups):
  GET /groups/:id/balances  → 200  net balances + caller's pairwise balances
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from splitwibe.app.extensions import db
from splitwibe.app.middleware.auth_middleware import require_auth
from splitwibe.app.services import balance_service

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/<int:group_id>/balances", methods=["GET"])
@require_auth
def get_balances(group_id: int):
    """
    GET /groups/:id/balances

    Balances are computed from the full expense and settlement history on
    every request; nothing is cached. The service verifies the caller is a
    group member and raises INTERNAL_ERROR (500) if the net balances do not
    sum to zero.
    """
    result = balance_service.get_balance_response(
        group_id=group_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
