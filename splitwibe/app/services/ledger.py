"""
services/ledger.py — Ledger/Balance engine.

This file is the SINGLE SOURCE OF TRUTH for how balances are computed and how
an expense is split. Any change to how balances work must be made here.

A group's finances are a pure function of its history: expenses, their
splits, and settlements. Nothing is stored as a running total, so every read
recomputes from a LedgerSnapshot and concurrent writers cannot corrupt a
shared balance.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Reads and writes go through a ledger store (see ledger_store.py); the
    engine never touches a SQLAlchemy session itself.
  - Row objects only need the attributes used below, so unit tests can pass
    SimpleNamespace rows.

Sign conventions (positive = the user is owed money):
  group balance   = paid expenses - own splits + settlements paid - settlements received
  pairwise(A, B)  = B's splits on A's expenses - A's splits on B's expenses
                    + settlements A -> B - settlements B -> A

Closure: sum(compute_balances(snapshot).values()) == 0.00 for any history in
which every expense's splits sum to its amount. compute_equal_splits()
guarantees that to the cent.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, Decimal

from splitwibe.app.errors import AppError, ErrorCode

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


# ── Snapshot ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable view of one group's records, fetched once per request."""

    group_id: int
    member_ids: tuple[int, ...]
    expenses: tuple = ()      # rows with id, amount, paid_by_user_id
    splits: tuple = ()        # rows with expense_id, user_id, amount_owed
    settlements: tuple = ()   # rows with paid_by_user_id, paid_to_user_id, amount


def load_snapshot(group_id: int, store) -> LedgerSnapshot:
    """Reads every record the balance computations need through `store`."""
    member_ids = store.list_members(group_id)
    expenses = store.list_expenses(group_id)
    expense_ids = [e.id for e in expenses]
    splits = store.list_splits(expense_ids) if expense_ids else []
    settlements = store.list_settlements(group_id)

    return LedgerSnapshot(
        group_id=group_id,
        member_ids=tuple(member_ids),
        expenses=tuple(expenses),
        splits=tuple(splits),
        settlements=tuple(settlements),
    )


# ── Balance computations ───────────────────────────────────────────────────

def compute_group_balance(snapshot: LedgerSnapshot, user_id: int) -> Decimal:
    """Net balance of one user against the whole group."""
    balance = ZERO

    for expense in snapshot.expenses:
        if expense.paid_by_user_id == user_id:
            balance += expense.amount

    for split in snapshot.splits:
        if split.user_id == user_id:
            balance -= split.amount_owed

    for settlement in snapshot.settlements:
        if settlement.paid_by_user_id == user_id:
            balance += settlement.amount
        if settlement.paid_to_user_id == user_id:
            balance -= settlement.amount

    return balance


def compute_balances(snapshot: LedgerSnapshot) -> dict[int, Decimal]:
    """
    Returns {user_id: net_balance} for every member in a single pass.

    Members with no records appear with 0.00. Users who appear in records but
    are no longer members are kept, so the closure invariant still holds.
    """
    balances: dict[int, Decimal] = defaultdict(lambda: ZERO)

    for expense in snapshot.expenses:
        balances[expense.paid_by_user_id] += expense.amount

    for split in snapshot.splits:
        balances[split.user_id] -= split.amount_owed

    for settlement in snapshot.settlements:
        balances[settlement.paid_by_user_id] += settlement.amount
        balances[settlement.paid_to_user_id] -= settlement.amount

    for member_id in snapshot.member_ids:
        balances.setdefault(member_id, ZERO)

    return dict(balances)


def compute_pairwise_balance(
        snapshot: LedgerSnapshot,
        user_a: int,
        user_b: int,
) -> Decimal:
    """
    Balance between exactly two users, from user_a's point of view.

    Positive: user_b owes user_a. Negative: user_a owes user_b.
    Only the two users' mutual records count; this cannot be derived from the
    group balances, which mix exposure to every member.
    """
    if user_a == user_b:
        return ZERO

    payer_by_expense = {e.id: e.paid_by_user_id for e in snapshot.expenses}
    balance = ZERO

    for split in snapshot.splits:
        payer = payer_by_expense.get(split.expense_id)
        if payer == user_a and split.user_id == user_b:
            balance += split.amount_owed
        elif payer == user_b and split.user_id == user_a:
            balance -= split.amount_owed

    for settlement in snapshot.settlements:
        if settlement.paid_by_user_id == user_a and settlement.paid_to_user_id == user_b:
            balance += settlement.amount
        elif settlement.paid_by_user_id == user_b and settlement.paid_to_user_id == user_a:
            balance -= settlement.amount

    return balance


def compute_pairwise_balances(
        snapshot: LedgerSnapshot,
        user_id: int,
) -> dict[int, Decimal]:
    """Returns {counterpart_id: pairwise balance} for every other member."""
    return {
        member_id: compute_pairwise_balance(snapshot, user_id, member_id)
        for member_id in snapshot.member_ids
        if member_id != user_id
    }


# ── Equal split ────────────────────────────────────────────────────────────

def _validate_amount(amount: Decimal, field: str = "amount") -> None:
    """Raises INVALID_AMOUNT for amount <= 0 and INVALID_AMOUNT_PRECISION past cents."""
    if amount <= ZERO:
        raise AppError(
            ErrorCode.INVALID_AMOUNT,
            f"Amount must be greater than zero (got {amount}).",
            422,
            field=field,
        )
    if amount.as_tuple().exponent < -2:
        raise AppError(
            ErrorCode.INVALID_AMOUNT_PRECISION,
            "Amount must have at most 2 decimal places.",
            400,
            field=field,
        )


def compute_equal_splits(
        amount: Decimal,
        member_ids: list[int],
        payer_id: int,
) -> list[dict]:
    """
    Divides `amount` equally among `member_ids`, payer included.

    Rounding policy: every share is amount / n rounded DOWN to the cent.
    The residue (between 0 and n-1 cents) is added to the payer's share,
    so sum(result amounts) == amount exactly.

    Example: 10.00 over three members, payer 1 ->
        [{1: 3.34}, {2: 3.33}, {3: 3.33}]

    Returns:
        List of {"user_id": int, "amount_owed": Decimal}, in member_ids order.

    Raises:
        AppError(INVALID_AMOUNT, 422)    -- amount <= 0
        AppError(EMPTY_MEMBERSHIP, 422)  -- no members to split between
        AppError(PAYER_NOT_MEMBER, 422)  -- payer not among member_ids
    """
    _validate_amount(amount)

    if not member_ids:
        raise AppError(
            ErrorCode.EMPTY_MEMBERSHIP,
            "Cannot split an expense over a group with no members.",
            422,
        )

    if payer_id not in member_ids:
        raise AppError(
            ErrorCode.PAYER_NOT_MEMBER,
            f"User {payer_id} is not a member of this group.",
            422,
            field="paid_by_user_id",
        )

    n = len(member_ids)
    share = (amount / Decimal(n)).quantize(CENT, rounding=ROUND_DOWN)
    residue = amount - share * n

    splits = [{"user_id": uid, "amount_owed": share} for uid in member_ids]

    if residue > ZERO:
        logger.debug("Assigning rounding residue %s of %s to payer %s", residue, amount, payer_id)
        for split in splits:
            if split["user_id"] == payer_id:
                split["amount_owed"] += residue
                break

    # Must always hold; a failure here is a programming error.
    total = sum((s["amount_owed"] for s in splits), ZERO)
    if total != amount:
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Equal split produced sum {total} for amount {amount}.",
            500,
        )

    return splits


# ── Append-only writes ─────────────────────────────────────────────────────

def record_expense(
        store,
        group_id: int,
        description: str,
        amount: Decimal,
        payer_id: int,
        member_ids: list[int],
        expense_date: date | None = None,
) -> tuple:
    """
    Records an expense and its equal splits as one unit.

    `member_ids` is the group's membership at call time. Splits are fixed
    from then on; later joins do not touch them.

    Atomicity: the store only flushes. Every split is computed before the
    first insert, and the caller commits once, so a failure leaves nothing
    to commit.

    Returns:
        (expense row, list of split records as inserted)
    """
    splits_data = compute_equal_splits(amount, list(member_ids), payer_id)

    expense = store.insert_expense({
        "group_id": group_id,
        "description": description,
        "amount": amount,
        "paid_by_user_id": payer_id,
        "expense_date": expense_date or date.today(),
    })

    split_records = [
        {
            "expense_id": expense.id,
            "user_id": s["user_id"],
            "amount_owed": s["amount_owed"],
        }
        for s in splits_data
    ]
    store.insert_splits(split_records)

    return expense, split_records


def record_settlement(
        store,
        group_id: int,
        from_user_id: int,
        to_user_id: int,
        amount: Decimal,
):
    """
    Records a payment from `from_user_id` to `to_user_id`.

    The amount is not checked against any outstanding balance: partial and
    excess payments are both valid, and an excess simply flips the sign of
    the pairwise balance.
    """
    _validate_amount(amount)

    if from_user_id == to_user_id:
        raise AppError(
            ErrorCode.SELF_SETTLEMENT,
            "A settlement cannot be made to yourself.",
            422,
            field="paid_to_user_id",
        )

    return store.insert_settlement({
        "group_id": group_id,
        "paid_by_user_id": from_user_id,
        "paid_to_user_id": to_user_id,
        "amount": amount,
    })
