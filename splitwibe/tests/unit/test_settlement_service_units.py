"""
Unit tests for settlement_service.create_settlement: settle-up, overpayment
and the membership rules, without a database.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from splitwibe.app.errors import AppError, ErrorCode, WarningCode
from splitwibe.app.services import settlement_service

_MODULE = "splitwibe.app.services.settlement_service"


@pytest.fixture
def guards():
    """Patches the group/membership guards so only the settlement logic runs."""
    with patch(f"{_MODULE}.get_group_or_404") as get_group, \
            patch(f"{_MODULE}.require_member") as require_member, \
            patch(f"{_MODULE}._require_recipient_member") as require_recipient:
        yield SimpleNamespace(
            get_group=get_group,
            require_member=require_member,
            require_recipient=require_recipient,
        )


def _run(pairwise: str, data: dict):
    """Calls create_settlement with the caller's pairwise balance fixed to `pairwise`."""
    with patch(f"{_MODULE}.ledger.load_snapshot"), \
            patch(f"{_MODULE}.ledger.compute_pairwise_balance", return_value=Decimal(pairwise)), \
            patch(f"{_MODULE}.ledger.record_settlement") as record:
        record.side_effect = lambda store, **kw: SimpleNamespace(**kw)
        settlement, warnings = settlement_service.create_settlement(
            group_id=1,
            paid_by_id=2,
            data=data,
            session=MagicMock(),
        )
    return settlement, warnings


def test_list_settlements_raises_group_not_found():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        settlement_service.list_settlements(
            group_id=99999,
            caller_id=1,
            session=session,
        )

    err = exc_info.value
    assert err.code == ErrorCode.GROUP_NOT_FOUND
    assert err.http_status == 404


def test_partial_payment_has_no_warning(guards):
    settlement, warnings = _run("-50.00", {"paid_to_user_id": 1, "amount": Decimal("20.00")})

    assert settlement.amount == Decimal("20.00")
    assert settlement.from_user_id == 2
    assert settlement.to_user_id == 1
    assert warnings == []


def test_exact_payment_has_no_warning(guards):
    _, warnings = _run("-50.00", {"paid_to_user_id": 1, "amount": Decimal("50.00")})
    assert warnings == []


def test_overpayment_is_recorded_with_warning(guards):
    settlement, warnings = _run("-50.00", {"paid_to_user_id": 1, "amount": Decimal("80.00")})

    assert settlement.amount == Decimal("80.00")
    assert len(warnings) == 1
    assert warnings[0]["code"] == WarningCode.OVERPAYMENT


def test_paying_someone_who_owes_you_warns(guards):
    """The caller is owed money, so any payment is more than they owe."""
    _, warnings = _run("15.00", {"paid_to_user_id": 1, "amount": Decimal("5.00")})
    assert [w["code"] for w in warnings] == [WarningCode.OVERPAYMENT]


def test_settle_up_pays_full_debt(guards):
    settlement, warnings = _run("-33.34", {"paid_to_user_id": 1, "amount": None})

    assert settlement.amount == Decimal("33.34")
    assert warnings == []


def test_settle_up_without_debt_raises(guards):
    with pytest.raises(AppError) as exc_info:
        _run("0.00", {"paid_to_user_id": 1, "amount": None})

    assert exc_info.value.code == ErrorCode.NOTHING_TO_SETTLE
    assert exc_info.value.http_status == 422


def test_settle_up_when_owed_money_raises(guards):
    with pytest.raises(AppError) as exc_info:
        _run("12.00", {"paid_to_user_id": 1})

    assert exc_info.value.code == ErrorCode.NOTHING_TO_SETTLE


def test_self_settlement_rejected_before_recipient_lookup(guards):
    with pytest.raises(AppError) as exc_info:
        settlement_service.create_settlement(
            group_id=1,
            paid_by_id=2,
            data={"paid_to_user_id": 2, "amount": Decimal("5.00")},
            session=MagicMock(),
        )

    assert exc_info.value.code == ErrorCode.SELF_SETTLEMENT
    guards.require_recipient.assert_not_called()


def test_recipient_must_be_member():
    session = MagicMock()
    session.execute.return_value.scalar_one_or_none.return_value = None

    with pytest.raises(AppError) as exc_info:
        settlement_service._require_recipient_member(group_id=1, user_id=9, session=session)

    err = exc_info.value
    assert err.code == ErrorCode.RECIPIENT_NOT_MEMBER
    assert err.http_status == 422
    assert err.field == "paid_to_user_id"
