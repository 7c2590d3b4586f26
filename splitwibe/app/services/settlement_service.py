"""
services/settlement_service.py — Settlement business logic.

Rules enforced here:
  FORBIDDEN (403)            — caller (the payer) must be a group member
  SELF_SETTLEMENT (422)      — payer and recipient must differ
  RECIPIENT_NOT_MEMBER (422) — recipient must be a group member
  NOTHING_TO_SETTLE (422)    — settle-up requested but the caller owes nothing
  OVERPAYMENT warning        — amount exceeds what the caller owes; still recorded

Settle-up:
  When the request omits `amount`, the caller pays the absolute value of
  their (negative) pairwise balance with the recipient, which brings that
  pairwise balance to exactly zero.

Overpayment:
  Balances are never stored, so paying more than is owed is harmless: the
  pairwise balance flips sign. The response carries an OVERPAYMENT warning
  alongside the 201.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility; services only flush.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitwibe.app.errors import AppError, ErrorCode, WarningCode
from splitwibe.app.models.membership import Membership
from splitwibe.app.models.settlement import Settlement
from splitwibe.app.services import ledger
from splitwibe.app.services.group_service import get_group_or_404, require_member
from splitwibe.app.services.ledger_store import SqlLedgerStore


def _require_recipient_member(group_id: int, user_id: int, session: Session) -> None:
    """Raises RECIPIENT_NOT_MEMBER (422) if user_id is not in the group."""
    membership = session.execute(
        select(Membership).where(
            Membership.group_id == group_id,
            Membership.user_id == user_id,
        )
    ).scalar_one_or_none()

    if membership is None:
        raise AppError(
            ErrorCode.RECIPIENT_NOT_MEMBER,
            f"User {user_id} is not a member of group {group_id}.",
            422,
            field="paid_to_user_id",
        )


def create_settlement(
        group_id: int,
        paid_by_id: int,
        data: dict,
        session: Session,
) -> tuple[Settlement, list[dict]]:
    """
    Records a settlement payment from paid_by_id to data["paid_to_user_id"].

    Args:
        group_id:   The group this settlement belongs to.
        paid_by_id: The authenticated user making the payment (from flask.g).
        data:       Validated dict from CreateSettlementSchema.
                    Keys: paid_to_user_id (int), amount (Decimal or None).

    Returns:
        (Settlement, warnings) where warnings is a list of warning dicts.
    """
    get_group_or_404(group_id, session)
    require_member(group_id, paid_by_id, session)

    paid_to_user_id: int = data["paid_to_user_id"]
    amount: Decimal | None = data.get("amount")

    if paid_by_id == paid_to_user_id:
        raise AppError(
            ErrorCode.SELF_SETTLEMENT,
            "A settlement cannot be made to yourself.",
            422,
            field="paid_to_user_id",
        )

    _require_recipient_member(group_id, paid_to_user_id, session)

    store = SqlLedgerStore(session)
    snapshot = ledger.load_snapshot(group_id, store)
    pairwise = ledger.compute_pairwise_balance(snapshot, paid_by_id, paid_to_user_id)
    current_debt = -pairwise if pairwise < 0 else ledger.ZERO

    warnings: list[dict] = []

    if amount is None:
        if current_debt == ledger.ZERO:
            raise AppError(
                ErrorCode.NOTHING_TO_SETTLE,
                f"You do not owe user {paid_to_user_id} anything in group {group_id}.",
                422,
                field="amount",
            )
        amount = abs(pairwise)
    elif amount > current_debt:
        warnings.append({
            "code": WarningCode.OVERPAYMENT,
            "message": (
                f"Settlement of {amount} exceeds current outstanding debt of "
                f"{current_debt} from user {paid_by_id} to user {paid_to_user_id}. "
                f"Recorded anyway."
            ),
        })

    settlement = ledger.record_settlement(
        store,
        group_id=group_id,
        from_user_id=paid_by_id,
        to_user_id=paid_to_user_id,
        amount=amount,
    )
    return settlement, warnings


def list_settlements(
        group_id: int,
        caller_id: int,
        session: Session,
) -> list[Settlement]:
    """Returns all settlements for a group, newest first."""
    get_group_or_404(group_id, session)
    require_member(group_id, caller_id, session)

    return SqlLedgerStore(session).list_settlements(group_id)
