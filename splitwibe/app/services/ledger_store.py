"""
services/ledger_store.py — SQLAlchemy-backed storage for the ledger engine.

The engine in ledger.py depends only on these seven methods, so any object
providing them (an in-memory fake in unit tests, for instance) can stand in.

Layer rules:
  - No Flask imports. Receives a SQLAlchemy Session.
  - Inserts flush, never commit. Commits are the route's responsibility.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitwibe.app.models.expense import Expense
from splitwibe.app.models.membership import Membership
from splitwibe.app.models.settlement import Settlement
from splitwibe.app.models.split import ExpenseSplit


class SqlLedgerStore:

    def __init__(self, session: Session) -> None:
        self.session = session

    # ── Reads ──────────────────────────────────────────────────────────────

    def list_members(self, group_id: int) -> list[int]:
        """user_ids of the group's current members, in join order."""
        stmt = (
            select(Membership.user_id)
            .where(Membership.group_id == group_id)
            .order_by(Membership.joined_at.asc(), Membership.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def list_expenses(self, group_id: int) -> list[Expense]:
        """The group's expenses, most recent date first."""
        stmt = (
            select(Expense)
            .where(Expense.group_id == group_id)
            .order_by(Expense.expense_date.desc(), Expense.id.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def list_splits(self, expense_ids: list[int]) -> list[ExpenseSplit]:
        if not expense_ids:
            return []
        stmt = select(ExpenseSplit).where(ExpenseSplit.expense_id.in_(expense_ids))
        return list(self.session.execute(stmt).scalars().all())

    def list_settlements(self, group_id: int) -> list[Settlement]:
        """The group's settlements, newest first."""
        stmt = (
            select(Settlement)
            .where(Settlement.group_id == group_id)
            .order_by(Settlement.created_at.desc(), Settlement.id.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    # ── Writes ─────────────────────────────────────────────────────────────

    def insert_expense(self, record: dict) -> Expense:
        expense = Expense(**record)
        self.session.add(expense)
        self.session.flush()  # populate expense.id before splits reference it
        return expense

    def insert_splits(self, records: list[dict]) -> None:
        self.session.add_all([ExpenseSplit(**r) for r in records])
        self.session.flush()

    def insert_settlement(self, record: dict) -> Settlement:
        settlement = Settlement(**record)
        self.session.add(settlement)
        self.session.flush()
        return settlement
