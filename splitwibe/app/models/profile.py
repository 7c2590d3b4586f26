"""
models/profile.py — Profile table definition.

Accounts live with the external identity provider; a profile row carries the
application-side data for one of its users. `id` equals the `sub` claim of
that user's access tokens.

No business logic. No imports from services or routes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splitwibe.app.extensions import db


class Profile(db.Model):
    __tablename__ = "profiles"

    __table_args__ = (
        CheckConstraint(
            "email LIKE '%@%'",
            name="ck_profiles_email_format",
        ),
    )

    # Assigned by the identity provider, not autoincremented.
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    display_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    memberships: Mapped[list["Membership"]] = relationship(  # noqa: F821
        "Membership",
        back_populates="user",
    )

    expenses_paid: Mapped[list["Expense"]] = relationship(  # noqa: F821
        "Expense",
        back_populates="payer",
        foreign_keys="[Expense.paid_by_user_id]",
    )

    splits: Mapped[list["ExpenseSplit"]] = relationship(  # noqa: F821
        "ExpenseSplit",
        back_populates="user",
    )

    settlements_made: Mapped[list["Settlement"]] = relationship(  # noqa: F821
        "Settlement",
        back_populates="payer",
        foreign_keys="[Settlement.paid_by_user_id]",
    )

    settlements_received: Mapped[list["Settlement"]] = relationship(  # noqa: F821
        "Settlement",
        back_populates="recipient",
        foreign_keys="[Settlement.paid_to_user_id]",
    )

    @property
    def name(self) -> str:
        """Display name, else the local part of the email, else 'User'."""
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return "User"

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Profile id={self.id} email={self.email!r}>"
