"""
routes/expenses.py — Expense route handlers.

Registered at url_prefix=/api/v1 (not /api/v1/expenses) because every path
is group-scoped (/groups/:id/expenses).

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.
  - _serialize_expense() is a pure data-shape helper, not business logic.

Endpoints:
  POST   /groups/:id/expenses   → 201  record an expense (equal split)
  GET    /groups/:id/expenses   → 200  list the group's expenses
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from splitwibe.app.extensions import db
from splitwibe.app.middleware.auth_middleware import require_auth
from splitwibe.app.models.expense import Expense
from splitwibe.app.schemas.expense_schema import CreateExpenseSchema
from splitwibe.app.services import expense_service

expenses_bp = Blueprint("expenses", __name__)


# ── Serialization helper ───────────────────────────────────────────────────
# Pure data-shaping. Amounts as strings.

def _serialize_expense(expense: Expense) -> dict:
    """Converts an Expense ORM object to a plain dict for JSON output."""
    return {
        "id": expense.id,
        "group_id": expense.group_id,
        "paid_by_user_id": expense.paid_by_user_id,
        "paid_by_name": expense.payer.name,
        "description": expense.description,
        "amount": str(expense.amount),                  # Decimal → string
        "date": expense.expense_date.isoformat(),
        "created_at": expense.created_at.isoformat(),
        "splits": [
            {
                "id": s.id,
                "user_id": s.user_id,
                "name": s.user.name,
                "amount_owed": str(s.amount_owed),      # Decimal → string
            }
            for s in sorted(expense.splits, key=lambda s: s.user_id)
        ],
    }


@expenses_bp.route("/groups/<int:group_id>/expenses", methods=["POST"])
@require_auth
def create_expense(group_id: int):
    """
    POST /groups/:id/expenses — Record a new expense.
    The server splits it equally between the group's current members.
    """
    data = CreateExpenseSchema().load(request.get_json(force=True) or {})
    expense = expense_service.create_expense(
        group_id=group_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 201


@expenses_bp.route("/groups/<int:group_id>/expenses", methods=["GET"])
@require_auth
def list_expenses(group_id: int):
    """GET /groups/:id/expenses — List a group's expenses, most recent first."""
    expenses = expense_service.list_expenses(
        group_id=group_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({
        "data": [_serialize_expense(e) for e in expenses],
        "warnings": [],
    }), 200
