"""
Unit tests for profile_service branches not naturally hit in integration flow.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from splitwibe.app.errors import AppError, ErrorCode
from splitwibe.app.services import profile_service


def test_get_profile_returns_serialized_profile():
    session = MagicMock()
    created_at = datetime(2026, 1, 1, tzinfo=timezone.utc)
    session.get.return_value = SimpleNamespace(
        id=7,
        email="alice@example.com",
        display_name=None,
        name="alice",
        created_at=created_at,
    )

    result = profile_service.get_profile(user_id=7, session=session)

    assert result == {
        "id": 7,
        "email": "alice@example.com",
        "display_name": None,
        "name": "alice",
        "created_at": created_at.isoformat(),
    }


def test_get_profile_raises_profile_not_found():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        profile_service.get_profile(user_id=404, session=session)

    assert exc_info.value.code == ErrorCode.PROFILE_NOT_FOUND
    assert exc_info.value.http_status == 404


def test_first_save_without_email_raises_missing_field():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        profile_service.upsert_profile(7, {"display_name": "Al"}, session)

    err = exc_info.value
    assert err.code == ErrorCode.MISSING_FIELD
    assert err.field == "email"
    session.add.assert_not_called()


def test_email_owned_by_someone_else_raises_duplicate():
    session = MagicMock()
    session.get.return_value = None
    session.execute.return_value.scalar_one_or_none.return_value = 99

    with pytest.raises(AppError) as exc_info:
        profile_service.upsert_profile(7, {"email": "taken@example.com"}, session)

    assert exc_info.value.code == ErrorCode.DUPLICATE_EMAIL
    assert exc_info.value.http_status == 409
    session.add.assert_not_called()


def test_update_keeps_own_email_and_clears_blank_display_name():
    session = MagicMock()
    profile = SimpleNamespace(
        id=7,
        email="alice@example.com",
        display_name="Alice",
        name="Alice",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    session.get.return_value = profile
    # The only profile using this email is the caller's own.
    session.execute.return_value.scalar_one_or_none.return_value = 7

    result, created = profile_service.upsert_profile(
        7,
        {"email": "  Alice@Example.com ", "display_name": "   "},
        session,
    )

    assert created is False
    assert profile.email == "alice@example.com"
    assert profile.display_name is None
    assert result["id"] == 7
    session.add.assert_not_called()
    session.flush.assert_called_once()
