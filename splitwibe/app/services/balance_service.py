"""
services/balance_service.py — Balance response assembly.

The formulas live in services/ledger.py; this module loads a snapshot,
attaches member names and checks the closure invariant before anything is
returned to a client.

Layer rules:
  - No Flask imports. Receives group_id, caller_id and a SQLAlchemy Session.
  - Returns plain Python dicts.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitwibe.app.errors import AppError, ErrorCode
from splitwibe.app.models.membership import Membership
from splitwibe.app.models.profile import Profile
from splitwibe.app.services import ledger
from splitwibe.app.services.group_service import get_group_or_404, require_member
from splitwibe.app.services.ledger_store import SqlLedgerStore


def get_member_names(group_id: int, session: Session) -> dict[int, str]:
    """Returns {user_id: display name} for the group's members."""
    stmt = (
        select(Profile)
        .join(Membership, Profile.id == Membership.user_id)
        .where(Membership.group_id == group_id)
    )
    return {p.id: p.name for p in session.execute(stmt).scalars().all()}


def _pairwise_status(balance: Decimal) -> str:
    if balance > 0:
        return "owes_you"
    if balance < 0:
        return "you_owe"
    return "settled"


def get_balance_response(
        group_id: int,
        caller_id: int,
        session: Session,
) -> dict:
    """
    Builds the payload for GET /groups/:id/balances.

    Contains every member's net balance, the caller's own balance, and the
    caller's pairwise balance with each other member (positive = they owe
    the caller).

    Raises:
        AppError(GROUP_NOT_FOUND, 404)  -- group does not exist.
        AppError(FORBIDDEN, 403)        -- caller not a group member.
        AppError(INTERNAL_ERROR, 500)   -- balances do not sum to zero.
    """
    get_group_or_404(group_id, session)
    require_member(group_id, caller_id, session)

    snapshot = ledger.load_snapshot(group_id, SqlLedgerStore(session))
    balances = ledger.compute_balances(snapshot)
    pairwise = ledger.compute_pairwise_balances(snapshot, caller_id)
    names = get_member_names(group_id, session)

    balance_sum = sum(balances.values(), ledger.ZERO)
    if balance_sum != ledger.ZERO:
        # Source data is corrupt; the error handler logs the context.
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Balance integrity check failed: sum was {balance_sum} (expected 0.00). "
            f"Group {group_id} has inconsistent financial data.",
            500,
        )

    return {
        "group_id": group_id,
        "my_balance": str(balances.get(caller_id, ledger.ZERO)),
        "balances": [
            {
                "user_id": uid,
                "name": names.get(uid, f"user_{uid}"),
                "balance": str(bal),
            }
            for uid, bal in balances.items()
        ],
        "pairwise": [
            {
                "user_id": uid,
                "name": names.get(uid, f"user_{uid}"),
                "balance": str(bal),
                "status": _pairwise_status(bal),
            }
            for uid, bal in pairwise.items()
        ],
        "balance_sum": str(balance_sum),
    }
