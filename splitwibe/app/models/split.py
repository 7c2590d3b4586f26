"""
models/split.py — ExpenseSplit table definition.

One row per group member per expense, written together with the expense by
ledger.record_expense(). No business logic here.

Key design points:
  - `amount_owed` uses Numeric(12, 2) — never Float.
  - amount_owed may be 0.00: an expense smaller than one cent per member
    still produces a split row for every member.
  - UNIQUE(expense_id, user_id): a member appears once per expense.

sum(amount_owed) == expense.amount is guaranteed by the equal-split
computation in services/ledger.py, which assigns the rounding residue to the
payer.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splitwibe.app.extensions import db


class ExpenseSplit(db.Model):
    __tablename__ = "expense_splits"

    __table_args__ = (
        UniqueConstraint("expense_id", "user_id", name="uq_expense_splits_expense_user"),
        CheckConstraint("amount_owed >= 0", name="ck_expense_splits_amount_nonnegative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # ON DELETE CASCADE — splits are destroyed with their expense.
    expense_id: Mapped[int] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False,
    )

    amount_owed: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense",
        back_populates="splits",
    )

    user: Mapped["Profile"] = relationship(  # noqa: F821
        "Profile",
        back_populates="splits",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ExpenseSplit id={self.id} "
            f"expense_id={self.expense_id} "
            f"user_id={self.user_id} "
            f"amount_owed={self.amount_owed}>"
        )
