"""Initial schema — all tables, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order:
  Tables in FK dependency order (profiles → groups → group_members →
  expenses → expense_splits, settlements), then indexes.

profiles.id is NOT auto-generated: it is the user id issued by the external
identity provider (the access token's `sub` claim).

ON DELETE policies:
  group_members.*            → RESTRICT  (cannot delete profile/group with members)
  expenses.*                 → RESTRICT  (cannot delete group/profile with expenses)
  expense_splits.expense_id  → CASCADE   (splits owned by expense)
  expense_splits.user_id     → RESTRICT  (cannot delete profile with splits)
  settlements.*              → RESTRICT  (cannot delete group/profile with settlements)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    """Apply the full initial schema."""

    # ── Step 1: profiles ───────────────────────────────────────────────────

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
        sa.UniqueConstraint("email", name="uq_profiles_email"),
        sa.CheckConstraint(
            "email LIKE '%@%'",
            name="ck_profiles_email_format",
        ),
    )

    # ── Step 2: groups ─────────────────────────────────────────────────────
    # invite_code is unique across all groups; joins look groups up by it.

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("invite_code", sa.String(8), nullable=False),
        sa.Column(
            "created_by_user_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT", name="fk_groups_creator"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.UniqueConstraint("invite_code", name="uq_groups_invite_code"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_groups_name_nonempty",
        ),
        sa.CheckConstraint(
            "LENGTH(invite_code) = 8",
            name="ck_groups_invite_code_length",
        ),
    )

    # ── Step 3: group_members ──────────────────────────────────────────────
    # Both FKs ON DELETE RESTRICT. UNIQUE(group_id, user_id).

    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_group_members_group"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT", name="fk_group_members_user"),
            nullable=False,
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_group_members"),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )

    # ── Step 4: expenses ───────────────────────────────────────────────────
    # Immutable once written. `date` is the day the money was spent;
    # created_at is when it was recorded.

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_expenses_group"),
            nullable=False,
        ),
        sa.Column(
            "paid_by_user_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT", name="fk_expenses_payer"),
            nullable=False,
        ),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "date",
            sa.Date(),
            nullable=False,
            server_default=sa.text("CURRENT_DATE"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        sa.CheckConstraint(
            "LENGTH(TRIM(description)) > 0",
            name="ck_expenses_description_nonempty",
        ),
    )

    # ── Step 5: expense_splits ─────────────────────────────────────────────
    # amount_owed may be 0.00 when an expense is smaller than one cent per
    # member; the row still records that the member took part.

    op.create_table(
        "expense_splits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "expense_id",
            sa.Integer(),
            sa.ForeignKey("expenses.id", ondelete="CASCADE", name="fk_expense_splits_expense"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT", name="fk_expense_splits_user"),
            nullable=False,
        ),
        sa.Column("amount_owed", sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_expense_splits"),
        sa.UniqueConstraint("expense_id", "user_id", name="uq_expense_splits_expense_user"),
        sa.CheckConstraint("amount_owed >= 0", name="ck_expense_splits_amount_nonnegative"),
    )

    # ── Step 6: settlements ────────────────────────────────────────────────
    # All three FKs ON DELETE RESTRICT.

    op.create_table(
        "settlements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_settlements_group"),
            nullable=False,
        ),
        sa.Column(
            "paid_by_user_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT", name="fk_settlements_payer"),
            nullable=False,
        ),
        sa.Column(
            "paid_to_user_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="RESTRICT", name="fk_settlements_recipient"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_settlements"),
        sa.CheckConstraint("amount > 0", name="ck_settlements_amount_positive"),
        sa.CheckConstraint(
            "paid_by_user_id <> paid_to_user_id",
            name="ck_settlements_no_self_settlement",
        ),
    )

    # ── Step 7: Indexes ────────────────────────────────────────────────────

    # group_members: list members of a group, list groups of a user.
    op.create_index("idx_group_members_group", "group_members", ["group_id"])
    op.create_index("idx_group_members_user", "group_members", ["user_id"])

    # expenses, settlements: every balance computation scans by group.
    op.create_index("idx_expenses_group", "expenses", ["group_id"])
    op.create_index("idx_settlements_group", "settlements", ["group_id"])

    # expense_splits: loaded by expense id for a group's expenses.
    op.create_index("idx_expense_splits_expense", "expense_splits", ["expense_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.

    For local development resets only. Production databases get corrective
    migrations, never rollbacks.
    """
    op.drop_index("idx_expense_splits_expense", table_name="expense_splits")
    op.drop_index("idx_settlements_group",      table_name="settlements")
    op.drop_index("idx_expenses_group",         table_name="expenses")
    op.drop_index("idx_group_members_user",     table_name="group_members")
    op.drop_index("idx_group_members_group",    table_name="group_members")

    op.drop_table("settlements")
    op.drop_table("expense_splits")
    op.drop_table("expenses")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("profiles")
