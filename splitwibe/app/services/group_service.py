"""
services/group_service.py — Group and membership business logic.

Authorization rules:
  - Any caller with a profile may create a group; the creator joins it.
  - Any caller with a profile may join a group by its invite code.
  - Only members may read a group (FORBIDDEN, 403, never 404).

Invite codes:
  8 characters from A-Z0-9, stored upper-case. Input is trimmed and
  upper-cased before lookup, so matching is case-insensitive.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility; services only flush.
"""

from __future__ import annotations

import logging
import secrets
import string
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from splitwibe.app.errors import AppError, ErrorCode
from splitwibe.app.models.expense import Expense
from splitwibe.app.models.group import Group
from splitwibe.app.models.membership import Membership
from splitwibe.app.models.profile import Profile

logger = logging.getLogger(__name__)

INVITE_CODE_LENGTH = 8
INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


# ── Shared guards ──────────────────────────────────────────────────────────
# Also used by the expense, settlement and balance services.

def get_group_or_404(group_id: int, session: Session) -> Group:
    """Returns the Group or raises GROUP_NOT_FOUND (404)."""
    group = session.get(Group, group_id)
    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {group_id} does not exist.",
            404,
        )
    return group


def require_member(group_id: int, user_id: int, session: Session) -> None:
    """Raises FORBIDDEN (403) if user_id is not a member of group_id."""
    membership = session.execute(
        select(Membership).where(
            Membership.group_id == group_id,
            Membership.user_id == user_id,
        )
    ).scalar_one_or_none()

    if membership is None:
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not a member of group {group_id}.",
            403,
        )


def get_profile_or_404(user_id: int, session: Session) -> Profile:
    """
    Returns the caller's Profile or raises PROFILE_NOT_FOUND (404).

    Memberships reference profiles, so a caller must create a profile
    (PUT /profile) before creating or joining a group.
    """
    profile = session.get(Profile, user_id)
    if profile is None:
        raise AppError(
            ErrorCode.PROFILE_NOT_FOUND,
            "No profile exists for this account. Create one with PUT /api/v1/profile.",
            404,
        )
    return profile


# ── Invite codes ───────────────────────────────────────────────────────────

def normalize_invite_code(raw: str) -> str:
    """Trims and upper-cases an invite code; raises INVALID_INVITE_CODE (400) on bad length."""
    code = (raw or "").strip().upper()
    if len(code) != INVITE_CODE_LENGTH:
        raise AppError(
            ErrorCode.INVALID_INVITE_CODE,
            f"Invite code must be {INVITE_CODE_LENGTH} characters.",
            400,
            field="invite_code",
        )
    return code


def generate_invite_code(session: Session, max_attempts: int = 10) -> str:
    """
    Returns a random invite code that no existing group uses.

    Raises INTERNAL_ERROR (500) if every attempt collides, which at 36^8
    codes means the alphabet or length has been misconfigured.
    """
    for _ in range(max_attempts):
        code = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
        taken = session.execute(
            select(Group.id).where(Group.invite_code == code)
        ).scalar_one_or_none()
        if taken is None:
            return code
        logger.warning("Invite code collision on %s; retrying", code)

    raise AppError(
        ErrorCode.INTERNAL_ERROR,
        f"Could not generate a unique invite code after {max_attempts} attempts.",
        500,
    )


# ── Serialization ──────────────────────────────────────────────────────────

def _build_group_dict(group: Group, members: list[Profile]) -> dict:
    """Serialises a Group with its member list to a plain dict."""
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "invite_code": group.invite_code,
        "created_by_user_id": group.created_by_user_id,
        "created_at": group.created_at.isoformat(),
        "members": [
            {
                "id": m.id,
                "name": m.name,
                "email": m.email,
            }
            for m in members
        ],
    }


def _list_member_profiles(group_id: int, session: Session) -> list[Profile]:
    stmt = (
        select(Profile)
        .join(Membership, Profile.id == Membership.user_id)
        .where(Membership.group_id == group_id)
        .order_by(Membership.joined_at.asc(), Membership.id.asc())
    )
    return list(session.execute(stmt).scalars().all())


# ── Public service functions ───────────────────────────────────────────────

def create_group(
        name: str,
        description: str | None,
        creator_id: int,
        session: Session,
        max_attempts: int = 10,
) -> dict:
    """
    Creates a group with a fresh invite code. The creator becomes its first
    member.

    Returns: dict with group details (including invite_code) and members.
    """
    creator = get_profile_or_404(creator_id, session)

    group = Group(
        name=name.strip(),
        description=(description or "").strip() or None,
        invite_code=generate_invite_code(session, max_attempts=max_attempts),
        created_by_user_id=creator_id,
    )
    session.add(group)
    session.flush()  # populate group.id before creating membership

    session.add(Membership(group_id=group.id, user_id=creator_id))
    session.flush()

    return _build_group_dict(group, [creator])


def list_groups(user_id: int, session: Session) -> list[dict]:
    """
    Returns the groups the user belongs to with their member counts,
    newest first.
    """
    counted = aliased(Membership)
    member_count = (
        select(func.count(counted.id))
        .where(counted.group_id == Group.id)
        .correlate(Group)
        .scalar_subquery()
    )
    stmt = (
        select(Group, member_count.label("member_count"))
        .join(Membership, Group.id == Membership.group_id)
        .where(Membership.user_id == user_id)
        .order_by(Group.created_at.desc(), Group.id.desc())
    )
    rows = session.execute(stmt).all()

    return [
        {
            "id": g.id,
            "name": g.name,
            "description": g.description,
            "created_at": g.created_at.isoformat(),
            "member_count": count or 0,
        }
        for g, count in rows
    ]


def get_group(group_id: int, caller_id: int, session: Session) -> dict:
    """
    Returns group details, current members and the group's total spend.

    Caller must be a member (FORBIDDEN 403, not 404).
    """
    group = get_group_or_404(group_id, session)
    require_member(group_id, caller_id, session)

    total = session.execute(
        select(func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.group_id == group_id)
    ).scalar_one()

    result = _build_group_dict(group, _list_member_profiles(group_id, session))
    result["total_expenses"] = str(Decimal(total).quantize(Decimal("0.01")))
    return result


def join_group(invite_code: str, user_id: int, session: Session) -> dict:
    """
    Adds the caller to the group identified by `invite_code`.

    Raises:
      AppError(INVALID_INVITE_CODE, 400) — code is not 8 characters after trimming
      AppError(PROFILE_NOT_FOUND, 404)   — caller has no profile yet
      AppError(GROUP_NOT_FOUND, 404)     — no group uses this code
      AppError(ALREADY_MEMBER, 409)      — caller already belongs to the group
    """
    code = normalize_invite_code(invite_code)
    get_profile_or_404(user_id, session)

    group = session.execute(
        select(Group).where(Group.invite_code == code)
    ).scalar_one_or_none()

    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            "No group uses this invite code.",
            404,
            field="invite_code",
        )

    existing = session.execute(
        select(Membership).where(
            Membership.group_id == group.id,
            Membership.user_id == user_id,
        )
    ).scalar_one_or_none()

    if existing is not None:
        raise AppError(
            ErrorCode.ALREADY_MEMBER,
            f"You are already a member of group {group.id}.",
            409,
        )

    session.add(Membership(group_id=group.id, user_id=user_id))
    session.flush()

    return {
        "group_id": group.id,
        "group_name": group.name,
    }
