"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing"), which
    uses an in-memory SQLite database unless TEST_DATABASE_URL points at a
    real PostgreSQL instance.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - Access tokens are minted here with the testing JWT secret, the same way
    the external identity provider signs them in production.

Helper functions (not fixtures) are provided for common operations:
  - token_for(user_id)          → signed access token
  - auth_headers(token)         → {"Authorization": "Bearer <token>"}
  - make_profile(client, ...)   → profile dict + token
  - make_group(client, ...)     → group dict
  - join_group(client, ...)     → HTTP response
  - make_expense(client, ...)   → HTTP response
  - settle(client, ...)         → HTTP response
  - get_balances(client, ...)   → balances dict

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from splitwibe.app import create_app
from splitwibe.app.extensions import db as _db


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the entire test session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test, children before parents."""
    yield

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        for table in reversed(_db.metadata.sorted_tables):
            _db.session.execute(table.delete())
        _db.session.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

JWT_SECRET = "test-jwt-secret"
JWT_AUDIENCE = "authenticated"


def token_for(user_id: int, expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    """Mints an access token for `user_id` the way the identity provider does."""
    payload = {
        "sub": str(user_id),
        "aud": JWT_AUDIENCE,
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_profile(
    client,
    user_id: int,
    email: str | None = None,
    display_name: str | None = None,
) -> dict:
    """
    Creates a profile for `user_id` and returns it with a ready token.
    Returns: {"profile": {...}, "token": "...", "id": user_id}
    """
    token = token_for(user_id)
    payload = {"email": email or f"user{user_id}@test.com"}
    if display_name is not None:
        payload["display_name"] = display_name

    resp = client.put("/api/v1/profile", json=payload, headers=auth_headers(token))
    assert resp.status_code == 201, f"make_profile failed: {resp.get_json()}"
    return {"profile": resp.get_json()["data"], "token": token, "id": user_id}


def make_group(client, token: str, name: str = "Test Group", description: str | None = None) -> dict:
    """Creates a group and returns the group data dict. The caller becomes its first member."""
    payload = {"name": name}
    if description is not None:
        payload["description"] = description

    resp = client.post("/api/v1/groups/", json=payload, headers=auth_headers(token))
    assert resp.status_code == 201, f"make_group failed: {resp.get_json()}"
    return resp.get_json()["data"]


def join_group(client, token: str, invite_code: str):
    """Joins a group by invite code. Returns the HTTP response."""
    return client.post(
        "/api/v1/groups/join",
        json={"invite_code": invite_code},
        headers=auth_headers(token),
    )


def make_expense(
    client,
    token: str,
    group_id: int,
    amount: str,
    description: str = "Test Expense",
    paid_by_user_id: int | None = None,
    date: str | None = None,
):
    """Creates an expense split equally across the group. Returns the HTTP response."""
    payload: dict = {"description": description, "amount": amount}
    if paid_by_user_id is not None:
        payload["paid_by_user_id"] = paid_by_user_id
    if date is not None:
        payload["date"] = date

    return client.post(
        f"/api/v1/groups/{group_id}/expenses",
        json=payload,
        headers=auth_headers(token),
    )


def settle(client, token: str, group_id: int, paid_to_user_id: int, amount: str | None = None):
    """POSTs a settlement (omit amount to settle up in full). Returns the HTTP response."""
    payload: dict = {"paid_to_user_id": paid_to_user_id}
    if amount is not None:
        payload["amount"] = amount

    return client.post(
        f"/api/v1/groups/{group_id}/settlements",
        json=payload,
        headers=auth_headers(token),
    )


def get_balances(client, token: str, group_id: int) -> dict:
    """GETs the balances payload for a group (asserts 200)."""
    resp = client.get(f"/api/v1/groups/{group_id}/balances", headers=auth_headers(token))
    assert resp.status_code == 200, f"get_balances failed: {resp.get_json()}"
    return resp.get_json()["data"]


def group_of(client, *user_ids: int) -> tuple[list[dict], dict]:
    """
    Creates profiles for `user_ids`; the first creates a group and the rest join it.
    Returns: (users, group)
    """
    users = [make_profile(client, uid) for uid in user_ids]
    group = make_group(client, users[0]["token"])
    for user in users[1:]:
        resp = join_group(client, user["token"], group["invite_code"])
        assert resp.status_code == 201, f"join failed: {resp.get_json()}"
    return users, group
