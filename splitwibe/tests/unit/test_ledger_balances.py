"""
tests/unit/test_ledger_balances.py — Unit tests for the ledger balance computations.

What this file proves:
  - compute_group_balance() and compute_balances() follow the sign convention
    (positive = owed money) for expenses, splits and settlements
  - Net balances over a group always sum to exactly 0.00
  - compute_pairwise_balance() is antisymmetric and only counts the two
    users' mutual records
  - Recomputing from the same snapshot gives the same answer
  - Overpaying a debt flips the pairwise sign without breaking the zero sum

Unit test constraints:
  - No database, no Flask, no auth context.
  - Rows are SimpleNamespace objects carrying only the attributes the engine reads.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

from splitwibe.app.services.ledger import (
    LedgerSnapshot,
    compute_balances,
    compute_equal_splits,
    compute_group_balance,
    compute_pairwise_balance,
    compute_pairwise_balances,
)

A, B, C = 1, 2, 3


# ── Snapshot builder ───────────────────────────────────────────────────────

def _snapshot(members, expenses=(), settlements=()):
    """
    Builds a LedgerSnapshot from compact tuples.

    expenses:    (payer_id, amount_str) — split equally over `members`
    settlements: (from_id, to_id, amount_str)
    """
    expense_rows = []
    split_rows = []
    for expense_id, (payer_id, amount) in enumerate(expenses, start=1):
        amount = Decimal(amount)
        expense_rows.append(SimpleNamespace(
            id=expense_id, paid_by_user_id=payer_id, amount=amount,
        ))
        for split in compute_equal_splits(amount, list(members), payer_id):
            split_rows.append(SimpleNamespace(
                expense_id=expense_id,
                user_id=split["user_id"],
                amount_owed=split["amount_owed"],
            ))

    settlement_rows = [
        SimpleNamespace(paid_by_user_id=f, paid_to_user_id=t, amount=Decimal(a))
        for f, t, a in settlements
    ]

    return LedgerSnapshot(
        group_id=1,
        member_ids=tuple(members),
        expenses=tuple(expense_rows),
        splits=tuple(split_rows),
        settlements=tuple(settlement_rows),
    )


def _assert_closure(snapshot: LedgerSnapshot) -> None:
    total = sum(compute_balances(snapshot).values(), Decimal("0.00"))
    assert total == Decimal("0.00"), f"balances sum to {total}, expected 0.00"


# ── Group balance ──────────────────────────────────────────────────────────

def test_single_expense_two_members():
    """A pays 100 for A and B → A is owed 50, B owes 50."""
    snap = _snapshot([A, B], expenses=[(A, "100.00")])

    assert compute_group_balance(snap, A) == Decimal("50.00")
    assert compute_group_balance(snap, B) == Decimal("-50.00")
    assert compute_pairwise_balance(snap, A, B) == Decimal("50.00")
    _assert_closure(snap)


def test_settlement_clears_both_balances():
    """B settles 50 to A after the expense above → everyone at zero."""
    snap = _snapshot(
        [A, B],
        expenses=[(A, "100.00")],
        settlements=[(B, A, "50.00")],
    )

    assert compute_group_balance(snap, A) == Decimal("0.00")
    assert compute_group_balance(snap, B) == Decimal("0.00")
    assert compute_pairwise_balance(snap, A, B) == Decimal("0.00")
    _assert_closure(snap)


def test_three_way_split_balances_sum_to_zero():
    """A pays 10.00 over three members → A is owed 6.66, B and C owe 3.33."""
    snap = _snapshot([A, B, C], expenses=[(A, "10.00")])

    assert compute_group_balance(snap, A) == Decimal("6.66")
    assert compute_group_balance(snap, B) == Decimal("-3.33")
    assert compute_group_balance(snap, C) == Decimal("-3.33")
    _assert_closure(snap)


def test_member_without_records_has_zero_balance():
    snap = _snapshot([A, B, C])

    assert compute_balances(snap) == {
        A: Decimal("0.00"),
        B: Decimal("0.00"),
        C: Decimal("0.00"),
    }
    assert compute_group_balance(snap, C) == Decimal("0.00")


def test_compute_balances_matches_per_user_balance():
    snap = _snapshot(
        [A, B, C],
        expenses=[(A, "90.00"), (B, "31.00"), (C, "0.05")],
        settlements=[(C, A, "12.34")],
    )

    balances = compute_balances(snap)
    for user_id in (A, B, C):
        assert balances[user_id] == compute_group_balance(snap, user_id)
    _assert_closure(snap)


def test_former_member_keeps_balance_in_closure():
    """A user who has records but left the member list still counts toward the zero sum."""
    full = _snapshot([A, B, C], expenses=[(A, "30.00")])
    without_c = LedgerSnapshot(
        group_id=full.group_id,
        member_ids=(A, B),
        expenses=full.expenses,
        splits=full.splits,
        settlements=full.settlements,
    )

    balances = compute_balances(without_c)
    assert balances[C] == Decimal("-10.00")
    _assert_closure(without_c)


# ── Pairwise balance ───────────────────────────────────────────────────────

def test_pairwise_is_antisymmetric():
    snap = _snapshot(
        [A, B, C],
        expenses=[(A, "60.00"), (B, "15.00"), (C, "7.77")],
        settlements=[(B, A, "5.00"), (C, B, "1.00")],
    )

    for x in (A, B, C):
        for y in (A, B, C):
            assert compute_pairwise_balance(snap, x, y) == -compute_pairwise_balance(snap, y, x)


def test_pairwise_with_self_is_zero():
    snap = _snapshot([A, B], expenses=[(A, "100.00")])
    assert compute_pairwise_balance(snap, A, A) == Decimal("0.00")


def test_pairwise_ignores_third_party_records():
    """C's expense and B↔C settlement do not move the A/B pairwise balance."""
    snap = _snapshot(
        [A, B, C],
        expenses=[(A, "30.00"), (C, "90.00")],
        settlements=[(B, C, "30.00")],
    )

    # A's 30 expense: B owes A 10. C's 90 expense: A and B each owe C 30.
    assert compute_pairwise_balance(snap, A, B) == Decimal("10.00")
    assert compute_pairwise_balance(snap, A, C) == Decimal("-20.00")
    assert compute_pairwise_balance(snap, B, C) == Decimal("0.00")


def test_pairwise_nets_expenses_in_both_directions():
    snap = _snapshot([A, B], expenses=[(A, "100.00"), (B, "40.00")])

    # B owes A 50, A owes B 20.
    assert compute_pairwise_balance(snap, A, B) == Decimal("30.00")


def test_compute_pairwise_balances_lists_every_other_member():
    snap = _snapshot([A, B, C], expenses=[(A, "30.00")])

    result = compute_pairwise_balances(snap, A)
    assert result == {B: Decimal("10.00"), C: Decimal("10.00")}


# ── Overpayment and idempotence ────────────────────────────────────────────

def test_overpayment_flips_pairwise_sign():
    """B owes A 50 but pays 80 → A now owes B 30; totals still zero."""
    snap = _snapshot(
        [A, B],
        expenses=[(A, "100.00")],
        settlements=[(B, A, "80.00")],
    )

    assert compute_pairwise_balance(snap, A, B) == Decimal("-30.00")
    assert compute_pairwise_balance(snap, B, A) == Decimal("30.00")
    assert compute_group_balance(snap, B) == Decimal("30.00")
    _assert_closure(snap)


def test_recomputation_is_stable():
    snap = _snapshot(
        [A, B, C],
        expenses=[(A, "10.00"), (B, "20.01")],
        settlements=[(C, A, "3.33")],
    )

    first = compute_balances(snap)
    second = compute_balances(snap)
    assert first == second
    assert compute_pairwise_balance(snap, A, C) == compute_pairwise_balance(snap, A, C)


def test_results_are_decimal_not_float():
    snap = _snapshot([A, B], expenses=[(A, "0.03")])

    for value in compute_balances(snap).values():
        assert isinstance(value, Decimal)
    assert isinstance(compute_pairwise_balance(snap, A, B), Decimal)
