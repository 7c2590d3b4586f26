"""
services/expense_service.py — Expense business logic.

Authorization rules:
  - Create: caller must be a group member (FORBIDDEN, 403). The payer
    defaults to the caller and must be a member (PAYER_NOT_MEMBER, 422).
  - List:   caller must be a group member (FORBIDDEN, 403).

Split computation lives in services/ledger.py (record_expense). Every
current member owes an equal share; the rounding residue goes to the payer.

Expenses are immutable once recorded. There is no edit or delete.

Layer rules:
  - No Flask imports. Receives plain ints and dicts; returns ORM objects or
    raises AppError.
  - Commits are the route's responsibility; services only flush.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from splitwibe.app.models.expense import Expense
from splitwibe.app.services import ledger
from splitwibe.app.services.group_service import get_group_or_404, require_member
from splitwibe.app.services.ledger_store import SqlLedgerStore


def create_expense(
        group_id: int,
        caller_id: int,
        data: dict,
        session: Session,
) -> Expense:
    """
    Records a new expense split equally between the group's current members.

    Args:
        group_id:  The group this expense belongs to.
        caller_id: The authenticated user creating the expense (from flask.g).
        data:      Validated dict from CreateExpenseSchema.

    Returns:
        The newly created Expense ORM object, splits loaded.
    """
    get_group_or_404(group_id, session)
    require_member(group_id, caller_id, session)

    store = SqlLedgerStore(session)
    payer_id = data.get("paid_by_user_id") or caller_id

    expense, _ = ledger.record_expense(
        store,
        group_id=group_id,
        description=data["description"].strip(),
        amount=data["amount"],
        payer_id=payer_id,
        member_ids=store.list_members(group_id),
        expense_date=data.get("date"),
    )

    # Load the splits relationship for the route's serializer.
    session.refresh(expense)
    return expense


def list_expenses(
        group_id: int,
        caller_id: int,
        session: Session,
) -> list[Expense]:
    """Returns the group's expenses, most recent date first."""
    get_group_or_404(group_id, session)
    require_member(group_id, caller_id, session)

    return SqlLedgerStore(session).list_expenses(group_id)
